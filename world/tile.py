"""
world/tile.py
=============
Excavation units of a dig site.

A tile sits at a grid ``position`` and a ``layer``.  Several tiles may
share a position, one per layer, with higher layers lying on top of lower
ones.  Which of them the player can work on is decided by
``world/dig_grid.py``, not here.

Excavation is one-way: once ``excavated`` is true it never reverts.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from typing import Optional


class StructureType(enum.Enum):
    """Features found in, or built on, a tile."""
    NONE      = "none"
    WALL      = "wall"
    FLOOR     = "floor"
    PIT       = "pit"
    BURIAL    = "burial"
    BUILDING  = "building"
    TEMPLE    = "temple"
    PALACE    = "palace"
    # Camp structures placed by the player
    TENT      = "tent"
    DIG_HOUSE = "dig_house"

    @property
    def is_camp(self) -> bool:
        return self in (StructureType.TENT, StructureType.DIG_HOUSE)


@dataclass
class Tile:
    """A single excavation unit.

    Parameters
    ----------
    site_id:
        Owning site.
    position:
        ``(x, y)`` on the site grid.
    layer:
        Depth index.
    """

    site_id:       str
    position:      tuple[int, int]
    layer:         int                = 0
    structure:     StructureType      = StructureType.NONE
    tile_id:       str                = field(default_factory=lambda: str(uuid.uuid4()))
    excavated:     bool               = False
    artefacts:     list[str]          = field(default_factory=list)
    excavated_at:  Optional[float]    = None

    def excavate(self, at: float) -> bool:
        """Mark the tile excavated at clock reading *at*.

        Returns
        -------
        bool
            ``False`` if the tile was already excavated (no-op).
        """
        if self.excavated:
            return False
        self.excavated    = True
        self.excavated_at = at
        return True

    def is_excavated(self) -> bool:
        return self.excavated

    def add_artefact(self, artefact_id: str) -> None:
        if artefact_id not in self.artefacts:
            self.artefacts.append(artefact_id)

    def remove_artefact(self, artefact_id: str) -> None:
        try:
            self.artefacts.remove(artefact_id)
        except ValueError:
            pass

    def set_structure(self, structure: StructureType) -> None:
        self.structure = structure

    def __repr__(self) -> str:
        return (
            f"<Tile {self.position} L{self.layer} "
            f"excavated={self.excavated} finds={len(self.artefacts)}>"
        )
