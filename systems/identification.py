"""
systems/identification.py
=========================
Reveals what an artefact really is and revalues it.

Identification needs specialists on hand: archaeologists for every type,
plus a linguist for anything inscribed.  The staff are checked but not
consumed.  Only rare and better finds are worth the effort; lower
rarities get an unsatisfiable requirement so they can never be
identified.

The input artefact is never mutated.  ``identify_artefact()`` returns an
identified copy and the caller replaces its stored artefact with it.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from systems.rules import UNSATISFIABLE, CatalogueEntry, IdentificationRule, Rules
from world.artefact import UNKNOWN, Artefact, Bonus

log = logging.getLogger(__name__)

# Catalogue entry for types the rules do not describe
_FALLBACK_ENTRY = CatalogueEntry(
    name     = "Unknown Artifact",
    style    = UNKNOWN,
    material = UNKNOWN,
    age      = UNKNOWN,
)


@dataclass(frozen=True)
class IdentificationRequirements:
    archaeologists: int
    linguists:      int
    time:           int


@dataclass
class IdentificationResult:
    """Outcome of ``identify_artefact()``.

    ``identified_artefact`` is the new artefact on success, the untouched
    input when it was already identified, and ``None`` otherwise.
    """
    success:             bool
    identified_artefact: Optional[Artefact] = None
    bonuses:             list[Bonus]        = field(default_factory=list)
    information:         str                = ""


class IdentificationSystem:
    """Checks staffing and produces identified artefacts.

    Parameters
    ----------
    rules:
        Supplies requirements, the catalogue, bonuses and sets.
    rng:
        Source of the value multiplier draw.
    clock:
        Returns the current time in seconds; stamped as ``identified_at``.
    """

    def __init__(self, rules: Rules, rng: random.Random, clock) -> None:
        self._rule: IdentificationRule = rules.identification
        self._rng   = rng
        self._clock = clock

    # ------------------------------------------------------------------
    # Requirements
    # ------------------------------------------------------------------

    def get_identification_requirements(self, artefact: Artefact) -> IdentificationRequirements:
        if artefact.rarity not in self._rule.identifiable_rarities:
            return IdentificationRequirements(UNSATISFIABLE, UNSATISFIABLE, 0)
        for group in self._rule.requirements:
            if artefact.artefact_type in group.types:
                return IdentificationRequirements(group.archaeologists, group.linguists, group.time)
        return IdentificationRequirements(archaeologists=1, linguists=0, time=1)

    def can_identify(self, artefact: Artefact, archaeologists: int, linguists: int) -> bool:
        need = self.get_identification_requirements(artefact)
        return archaeologists >= need.archaeologists and linguists >= need.linguists

    # ------------------------------------------------------------------
    # Identification
    # ------------------------------------------------------------------

    def identify_artefact(
        self,
        artefact:       Artefact,
        archaeologists: int,
        linguists:      int,
    ) -> IdentificationResult:
        """Identify *artefact* with the given specialists available.

        Returns
        -------
        IdentificationResult
            ``information`` is ``"Already identified"``,
            ``"Insufficient personnel"`` or
            ``"Successfully identified as <name>"``.
        """
        if artefact.identified:
            return IdentificationResult(
                success             = False,
                identified_artefact = artefact,
                information         = "Already identified",
            )
        if not self.can_identify(artefact, archaeologists, linguists):
            log.debug(
                "Cannot identify %r with %dA/%dL", artefact, archaeologists, linguists,
            )
            return IdentificationResult(success=False, information="Insufficient personnel")

        entry   = self._rule.catalogue.get(artefact.artefact_type, _FALLBACK_ENTRY)
        result  = artefact.snapshot()
        low, high = self._rule.value_multiplier
        result.identify(
            name        = entry.name,
            style       = entry.style,
            material    = entry.material,
            age         = entry.age,
            inscription = entry.inscription,
            multiplier  = self._rng.uniform(low, high),
            at          = self._clock(),
        )

        bonuses = self._bonuses_for(entry.inscription)
        for bonus in bonuses:
            result.add_bonus(bonus, step=self._rule.bonus_step)

        for set_rule in self._rule.sets:
            if result.artefact_type is set_rule.artefact_type and result.age == set_rule.age:
                result.assign_set(set_rule.name)
                break

        log.info("Identified %s: value %d -> %d", result.name, artefact.value, result.value)
        return IdentificationResult(
            success             = True,
            identified_artefact = result,
            bonuses             = bonuses,
            information         = f"Successfully identified as {result.name}",
        )

    def _bonuses_for(self, inscription: Optional[str]) -> list[Bonus]:
        if not inscription:
            return []
        text = inscription.lower()
        return [
            Bonus(type=b.type, value=b.value)
            for b in self._rule.bonuses
            if any(k in text for k in b.keywords)
        ]
