"""
systems/excavation.py
=====================
Turns a finished task into excavated tiles and finds.

Responsibilities
----------------
- Excavate every selected tile that is not excavated yet.
- Roll, per tile, for a structure and for one artefact using the task's
  rule table.
- Work on copies only: the caller's tiles are never touched.  The session
  merges the returned copies back into live state by tile id.
- Never post events; never import pygame.

All randomness goes through the ``random.Random`` passed in at
construction, so a seeded generator reproduces a dig exactly.
"""

from __future__ import annotations

import copy
import logging
import random
from dataclasses import dataclass, field
from typing import Iterable

from systems.rules import Rules, TaskRule
from world.artefact import Artefact, Rarity
from world.site import Site
from world.task import Task
from world.tile import StructureType, Tile

log = logging.getLogger(__name__)


@dataclass
class ExcavationResult:
    """What one ``execute_excavation()`` call produced.

    Parameters
    ----------
    tiles:
        Copies of the tiles that were excavated by this call.
    artefacts:
        Newly created, unidentified artefacts.
    structures:
        ``(tile_id, structure)`` for every structure uncovered.
    information:
        Human-readable log lines for the player.
    """
    tiles:       list[Tile]                         = field(default_factory=list)
    artefacts:   list[Artefact]                     = field(default_factory=list)
    structures:  list[tuple[str, StructureType]]    = field(default_factory=list)
    information: list[str]                          = field(default_factory=list)


class ExcavationSystem:
    """Rolls the outcome of excavation tasks.

    Usage
    -----
        system = ExcavationSystem(rules, random.Random(7))
        result = system.execute_excavation(task, site, tiles, now=clock())
    """

    def __init__(self, rules: Rules, rng: random.Random) -> None:
        self._rules = rules
        self._rng   = rng

    def execute_excavation(
        self,
        task:  Task,
        site:  Site,
        tiles: Iterable[Tile],
        now:   float,
    ) -> ExcavationResult:
        """Excavate *tiles* of *site* with *task*'s method.

        Tiles that belong to another site are skipped with an information
        line.  Tiles that are already excavated are skipped silently.
        """
        rule   = self._rules.task(task.task_type)
        result = ExcavationResult()

        for live in tiles:
            if live.site_id != site.site_id:
                result.information.append(f"Skipped tile {live.position}: not part of {site.name}")
                continue
            if live.excavated:
                log.debug("Tile %s already excavated", live.tile_id)
                continue

            tile = copy.deepcopy(live)
            tile.excavate(at=now)
            result.tiles.append(tile)

            structure = self._roll_structure(rule, tile)
            if structure is not None:
                tile.set_structure(structure)
                result.structures.append((tile.tile_id, structure))
                result.information.append(
                    f"Uncovered a {structure.value.replace('_', ' ')} at {tile.position}"
                )

            artefact = self._roll_artefact(rule, tile, site, now)
            if artefact is not None:
                tile.add_artefact(artefact.artefact_id)
                result.artefacts.append(artefact)
                result.information.append(
                    f"Found {artefact.rarity.value.replace('_', ' ')} "
                    f"{artefact.artefact_type.label.lower()} at {tile.position}"
                )

        if result.tiles and not result.artefacts:
            result.information.append("Nothing of note was found.")
        log.info(
            "%s at %r: %d tiles, %d artefacts, %d structures",
            task.task_type.value, site.name,
            len(result.tiles), len(result.artefacts), len(result.structures),
        )
        return result

    # ------------------------------------------------------------------
    # Rolls
    # ------------------------------------------------------------------

    def _roll_structure(self, rule: TaskRule, tile: Tile) -> StructureType | None:
        if not rule.structures or tile.structure is not StructureType.NONE:
            return None
        if self._rng.random() >= rule.structure_chance:
            return None
        return self._rng.choice(rule.structures)

    def _roll_artefact(self, rule: TaskRule, tile: Tile, site: Site, now: float) -> Artefact | None:
        # The chance itself is re-drawn for every tile
        low, high = rule.discovery_chance
        chance    = self._rng.uniform(low, high)
        if self._rng.random() >= chance:
            return None

        artefact_type = self._rng.choice(rule.artefact_types)
        rarity        = self._draw_rarity(rule)
        return Artefact(
            artefact_type = artefact_type,
            rarity        = rarity,
            value         = self._draw_value(rarity),
            tile_id       = tile.tile_id,
            provenience   = site.name,
            discovered_at = now,
        )

    def _draw_rarity(self, rule: TaskRule) -> Rarity:
        rarities = list(rule.rarity_weights)
        weights  = [rule.rarity_weights[r] for r in rarities]
        return self._rng.choices(rarities, weights=weights, k=1)[0]

    def _draw_value(self, rarity: Rarity) -> int:
        low, high = self._rules.value_ranges[rarity]
        return self._rng.randint(low, high)
