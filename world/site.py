"""
world/site.py
=============
Archaeological sites on the map of Mesopotamia.

A site is discovered (by sounding, or at game start for the bootstrap
site) before excavation may begin there.  ``excavation_started`` is only
ever set on a discovered site.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field

log = logging.getLogger(__name__)


class Difficulty(enum.Enum):
    """How demanding a site is; scales task personnel and cost."""
    EASY   = "easy"
    MEDIUM = "medium"
    HARD   = "hard"
    EXPERT = "expert"

    @classmethod
    def parse(cls, text: str) -> "Difficulty":
        """Case-insensitive lookup; unknown names fall back to MEDIUM."""
        key = str(text).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        log.debug("Unknown difficulty %r, using MEDIUM", text)
        return cls.MEDIUM


@dataclass
class Site:
    """A dig site.

    Parameters
    ----------
    name:
        Display name, also recorded as provenience on finds.
    size:
        Grid dimension; the base layer holds ``size * size`` tiles.
    map_location:
        ``(x, y)`` in percent of the map width/height.
    layers:
        Maximum excavation depth.
    historical_period:
        Flavour label such as ``"Ur III"``.
    """

    name:               str
    size:               int                 = 3
    map_location:       tuple[int, int]     = (0, 0)
    difficulty:         Difficulty          = Difficulty.MEDIUM
    layers:             int                 = 5
    historical_period:  str                 = "Unknown"
    site_id:            str                 = field(default_factory=lambda: str(uuid.uuid4()))
    discovered:         bool                = False
    excavation_started: bool                = False
    discovered_tiles:   list[str]           = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.excavation_started and not self.discovered:
            raise ValueError(f"Site {self.name!r} cannot start excavation before it is discovered")

    def discover(self) -> None:
        self.discovered = True

    def start_excavation(self) -> bool:
        """Open the site for digging.  Refused on an undiscovered site."""
        if not self.discovered:
            log.debug("start_excavation refused: %r not discovered", self.name)
            return False
        self.excavation_started = True
        return True

    def add_discovered_tile(self, tile_id: str) -> None:
        if tile_id not in self.discovered_tiles:
            self.discovered_tiles.append(tile_id)

    def total_tiles(self) -> int:
        return self.size * self.size

    def discovery_progress(self) -> float:
        """Fraction of the base grid that has been dug down to layer 0."""
        total = self.total_tiles()
        if total <= 0:
            return 0.0
        return len(self.discovered_tiles) / total

    def __repr__(self) -> str:
        return (
            f"<Site {self.name!r} {self.difficulty.name} "
            f"discovered={self.discovered} started={self.excavation_started}>"
        )
