"""
systems/rules.py
================
Loads the game rules from ``data/rules.yaml``.

Responsibilities
----------------
- Parse the YAML document into frozen dataclasses the systems can read
  without knowing the file layout.
- Validate shapes and enum names once, at load time.  A malformed rules
  file raises ``RulesError``; nothing downstream re-checks.
- Never post events; never roll dice.

Usage
-----
    rules = load_rules()                 # config.RULES_PATH
    rules = load_rules("my_rules.yaml")  # alternative ruleset
    rules.task(TaskType.TRENCH).duration
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import yaml

import config
from world.artefact import ArtefactType, Rarity
from world.player import Role
from world.site_generator import SiteProfile
from world.site import Difficulty
from world.task import TaskType
from world.tile import StructureType

log = logging.getLogger(__name__)

# Personnel count that no player can ever field; used to block identification
UNSATISFIABLE = 999


class RulesError(ValueError):
    """Raised when the rules document is missing or malformed."""


# ---------------------------------------------------------------------------
# Rule records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TaskRule:
    """Per-method numbers.

    Parameters
    ----------
    workers, archaeologists, linguists:
        Unscaled personnel requirement.
    base_cost:
        Unscaled flat cost before wages.
    duration:
        Seconds from start to completion.
    discovery_chance:
        ``(low, high)``; a fresh chance is drawn per tile in this range.
    artefact_types:
        Candidate types, drawn uniformly.
    rarity_weights:
        Relative weights for the rarity draw.
    structure_chance:
        Probability per tile of uncovering a structure.
    structures:
        Candidate structures, drawn uniformly.
    """
    workers:          int
    archaeologists:   int
    linguists:        int
    base_cost:        int
    duration:         float
    discovery_chance: tuple[float, float]
    artefact_types:   tuple[ArtefactType, ...]
    rarity_weights:   dict[Rarity, float]
    structure_chance: float                       = 0.0
    structures:       tuple[StructureType, ...]   = ()


@dataclass(frozen=True)
class RequirementRule:
    types:          tuple[ArtefactType, ...]
    archaeologists: int
    linguists:      int
    time:           int


@dataclass(frozen=True)
class BonusRule:
    type:     str
    value:    int
    keywords: tuple[str, ...]


@dataclass(frozen=True)
class SetRule:
    name:          str
    artefact_type: ArtefactType
    age:           str


@dataclass(frozen=True)
class CatalogueEntry:
    """What an artefact type turns out to be once identified."""
    name:        str
    style:       str
    material:    str
    age:         str
    inscription: Optional[str] = None


@dataclass(frozen=True)
class IdentificationRule:
    value_multiplier:      tuple[float, float]
    bonus_step:            float
    identifiable_rarities: frozenset[Rarity]
    requirements:          tuple[RequirementRule, ...]
    bonuses:               tuple[BonusRule, ...]
    sets:                  tuple[SetRule, ...]
    catalogue:             dict[ArtefactType, CatalogueEntry]


@dataclass(frozen=True)
class Rules:
    """The complete ruleset for a session."""
    starting_money:         int
    inventory_capacity:     int
    personnel_costs:        dict[Role, int]
    difficulty_multipliers: dict[Difficulty, float]
    value_ranges:           dict[Rarity, tuple[int, int]]
    tasks:                  dict[TaskType, TaskRule]
    identification:         IdentificationRule
    structure_costs:        dict[StructureType, int]
    dig_house_storage:      int
    museum_cases:           int
    museum_case_capacity:   int
    sounding_cost:          int
    sites:                  tuple[SiteProfile, ...] = field(default_factory=tuple)

    def task(self, task_type: TaskType) -> TaskRule:
        return self.tasks[task_type]

    def multiplier(self, difficulty: Union[Difficulty, str]) -> float:
        """Difficulty multiplier; unrecognised names give 1.0."""
        if not isinstance(difficulty, Difficulty):
            key = str(difficulty).strip().lower()
            difficulty = next((d for d in Difficulty if d.value == key), None)
            if difficulty is None:
                return 1.0
        return self.difficulty_multipliers.get(difficulty, 1.0)

    def cost_of(self, role: Role) -> int:
        return self.personnel_costs[role]


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_rules(path: Union[str, Path, None] = None) -> Rules:
    """Read and validate the rules document at *path*.

    Parameters
    ----------
    path:
        YAML file to read.  Defaults to ``config.RULES_PATH``.

    Raises
    ------
    RulesError
        If the file is missing, is not valid YAML, or does not match the
        expected shape.
    """
    path = Path(path) if path is not None else Path(config.RULES_PATH)
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except OSError as exc:
        raise RulesError(f"Cannot read rules file {str(path)!r}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise RulesError(f"Rules file {str(path)!r} is not valid YAML: {exc}") from exc

    rules = parse_rules(raw)
    log.info("Loaded rules from %s (%d tasks, %d sites)", path, len(rules.tasks), len(rules.sites))
    return rules


def parse_rules(raw: Any) -> Rules:
    """Build a ``Rules`` from an already-parsed YAML mapping."""
    if not isinstance(raw, dict):
        raise RulesError("Rules document must be a mapping")
    try:
        return Rules(
            starting_money         = int(raw["starting_money"]),
            inventory_capacity     = int(raw["inventory_capacity"]),
            personnel_costs        = {Role.parse(k): int(v) for k, v in raw["personnel_costs"].items()},
            difficulty_multipliers = {
                Difficulty(k): float(v) for k, v in raw["difficulty_multipliers"].items()
            },
            value_ranges           = {
                Rarity(k): _int_range(v, f"value_ranges.{k}") for k, v in raw["value_ranges"].items()
            },
            tasks                  = {TaskType(k): _task_rule(v) for k, v in raw["tasks"].items()},
            identification         = _identification_rule(raw["identification"]),
            structure_costs        = {
                StructureType(k): int(v) for k, v in raw.get("structures", {}).items()
            },
            dig_house_storage      = int(raw.get("dig_house_storage", 10)),
            museum_cases           = int(raw.get("museum", {}).get("cases", 3)),
            museum_case_capacity   = int(raw.get("museum", {}).get("case_capacity", 4)),
            sounding_cost          = int(raw.get("sounding_cost", 300)),
            sites                  = tuple(_site_profile(s) for s in raw.get("sites", [])),
        )
    except RulesError:
        raise
    except KeyError as exc:
        raise RulesError(f"Rules document is missing key {exc}") from exc
    except (TypeError, ValueError, AttributeError) as exc:
        raise RulesError(f"Rules document is malformed: {exc}") from exc


def _int_range(value: Any, where: str) -> tuple[int, int]:
    low, high = _pair(value, where)
    return int(low), int(high)


def _pair(value: Any, where: str) -> tuple[float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise RulesError(f"{where} must be a [low, high] pair, got {value!r}")
    low, high = float(value[0]), float(value[1])
    if low > high:
        raise RulesError(f"{where} has low > high: {value!r}")
    return low, high


def _task_rule(raw: dict) -> TaskRule:
    weights = {Rarity(k): float(v) for k, v in raw["rarity_weights"].items()}
    if not weights or sum(weights.values()) <= 0:
        raise RulesError("rarity_weights must contain a positive weight")
    types = tuple(ArtefactType(t) for t in raw["artefact_types"])
    if not types:
        raise RulesError("artefact_types must not be empty")
    return TaskRule(
        workers          = int(raw.get("workers", 0)),
        archaeologists   = int(raw.get("archaeologists", 0)),
        linguists        = int(raw.get("linguists", 0)),
        base_cost        = int(raw["base_cost"]),
        duration         = float(raw["duration"]),
        discovery_chance = _pair(raw["discovery_chance"], "discovery_chance"),
        artefact_types   = types,
        rarity_weights   = weights,
        structure_chance = float(raw.get("structure_chance", 0.0)),
        structures       = tuple(StructureType(s) for s in raw.get("structures") or []),
    )


def _identification_rule(raw: dict) -> IdentificationRule:
    return IdentificationRule(
        value_multiplier      = _pair(raw["value_multiplier"], "identification.value_multiplier"),
        bonus_step            = float(raw.get("bonus_step", 0.1)),
        identifiable_rarities = frozenset(Rarity(r) for r in raw["identifiable_rarities"]),
        requirements          = tuple(
            RequirementRule(
                types          = tuple(ArtefactType(t) for t in group["types"]),
                archaeologists = int(group.get("archaeologists", 0)),
                linguists      = int(group.get("linguists", 0)),
                time           = int(group.get("time", 1)),
            )
            for group in raw["requirements"].values()
        ),
        bonuses               = tuple(
            BonusRule(
                type     = str(b["type"]),
                value    = int(b["value"]),
                keywords = tuple(str(k).lower() for k in b["keywords"]),
            )
            for b in raw.get("bonuses", [])
        ),
        sets                  = tuple(
            SetRule(
                name          = str(s["name"]),
                artefact_type = ArtefactType(s["artefact_type"]),
                age           = str(s["age"]),
            )
            for s in raw.get("sets", [])
        ),
        catalogue             = {
            ArtefactType(k): CatalogueEntry(
                name        = str(v["name"]),
                style       = str(v["style"]),
                material    = str(v["material"]),
                age         = str(v["age"]),
                inscription = v.get("inscription"),
            )
            for k, v in raw["catalogue"].items()
        },
    )


def _site_profile(raw: dict) -> SiteProfile:
    location = raw.get("location", [0, 0])
    return SiteProfile(
        name       = str(raw["name"]),
        size       = int(raw.get("size", 3)),
        location   = (int(location[0]), int(location[1])),
        difficulty = Difficulty.parse(raw.get("difficulty", "medium")),
        layers     = int(raw.get("layers", 5)),
        period     = str(raw.get("period", "Unknown")),
        discovered = bool(raw.get("discovered", False)),
    )
