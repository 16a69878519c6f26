"""
world/artefact.py
=================
Artefacts recovered from excavated tiles.

This module defines only the data and its small mutation API; rolls and
personnel checks happen elsewhere.  Discovery lives in
``systems/excavation.py``; identification in ``systems/identification.py``.

Artefact lifecycle
------------------
    DISCOVERED (unidentified)  ->  IDENTIFIED
          |                            |
          +------> SOLD / STORED / EXHIBITED <----+

An unidentified artefact knows its type and rarity but carries sentinel
"Unknown" descriptive fields.  ``identify()`` fills them exactly once.
"""

from __future__ import annotations

import copy
import enum
import functools
import math
import uuid
from dataclasses import dataclass, field
from typing import Optional

UNKNOWN            = "Unknown"
UNIDENTIFIED_NAME  = "Artifact (Unidentified)"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ArtefactType(enum.Enum):
    """What kind of object was dug up."""
    STAMPED_BRICK    = "stamped_brick"
    CUNEIFORM_TABLET = "cuneiform_tablet"
    CYLINDER_SEAL    = "cylinder_seal"
    POTTERY          = "pottery"
    JEWELRY          = "jewelry"
    STATUE           = "statue"
    TOOL             = "tool"
    WEAPON           = "weapon"
    UNIDENTIFIED     = "unidentified"

    @property
    def label(self) -> str:
        """Human-readable type name (``"Cuneiform Tablet"``)."""
        return self.value.replace("_", " ").title()


@functools.total_ordering
class Rarity(enum.Enum):
    """Ordered rarity tier.  ``epic`` is accepted as a name for ``very_rare``."""
    COMMON    = "common"
    UNCOMMON  = "uncommon"
    RARE      = "rare"
    VERY_RARE = "very_rare"
    LEGENDARY = "legendary"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Rarity"]:
        if isinstance(value, str):
            text = value.strip().lower().replace(" ", "_")
            if text == "epic":
                return cls.VERY_RARE
            for member in cls:
                if member.value == text:
                    return member
        return None

    @property
    def rank(self) -> int:
        """Position in the ordering, 0 for COMMON."""
        return list(Rarity).index(self)

    def __lt__(self, other: "Rarity") -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank < other.rank


# ---------------------------------------------------------------------------
# Bonus
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Bonus:
    """A value bonus revealed by identification.

    Parameters
    ----------
    type:
        Label shown to the player, e.g. ``"Mentioning ruler"``.
    value:
        Bonus points; each point adds ``step`` (10 %) to the artefact value.
    """
    type:  str
    value: int


# ---------------------------------------------------------------------------
# Artefact dataclass
# ---------------------------------------------------------------------------

@dataclass
class Artefact:
    """A single find.

    Parameters
    ----------
    artefact_type:
        Kind of object.  Known at discovery even while unidentified.
    rarity:
        Rarity tier; drives the base value range and whether the artefact
        may be identified at all.
    value:
        Current market value in currency units.
    tile_id:
        The tile this artefact was recovered from.
    provenience:
        Name of the site at the time of discovery.
    discovered_at:
        Clock reading at discovery.
    """

    artefact_type:  ArtefactType
    rarity:         Rarity             = Rarity.COMMON
    value:          int                = 0
    tile_id:        str                = ""
    provenience:    str                = ""
    discovered_at:  float              = 0.0
    artefact_id:    str                = field(default_factory=lambda: str(uuid.uuid4()))
    name:           str                = UNIDENTIFIED_NAME
    identified:     bool               = False
    style:          str                = UNKNOWN
    material:       str                = UNKNOWN
    age:            str                = UNKNOWN
    inscription:    Optional[str]      = None
    set_name:       Optional[str]      = None
    bonuses:        list[Bonus]        = field(default_factory=list)
    identified_at:  Optional[float]    = None

    # ------------------------------------------------------------------
    # Mutation helpers
    # ------------------------------------------------------------------

    def identify(
        self,
        name:        str,
        style:       str,
        material:    str,
        age:         str,
        inscription: Optional[str],
        multiplier:  float,
        at:          float,
    ) -> bool:
        """Reveal the descriptive fields and revalue the artefact.

        Parameters
        ----------
        multiplier:
            Factor applied to the current value; the result is floored and
            never lower than the value before the call.
        at:
            Clock reading recorded as ``identified_at``.

        Returns
        -------
        bool
            ``False`` if the artefact was already identified (no-op).
        """
        if self.identified:
            return False
        self.identified    = True
        self.name          = name
        self.style         = style
        self.material      = material
        self.age           = age
        self.inscription   = inscription
        self.identified_at = at
        self.value         = max(self.value, math.floor(self.value * multiplier))
        return True

    def add_bonus(self, bonus: Bonus, step: float = 0.1) -> None:
        """Record *bonus* and raise the value by ``step`` per bonus point."""
        self.bonuses.append(bonus)
        self.value = max(self.value, math.floor(self.value * (1 + bonus.value * step)))

    def assign_set(self, set_name: str) -> None:
        self.set_name = set_name

    def snapshot(self) -> "Artefact":
        """Deep copy, detached from this instance."""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        state = "identified" if self.identified else "unidentified"
        return (
            f"<Artefact {self.artefact_type.name} {self.rarity.name} "
            f"value={self.value} {state}>"
        )
