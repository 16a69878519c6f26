"""
world/dig_grid.py
=================
The tile layout of one dig site.

Tiles are kept in a two-level mapping::

    position (x, y)  ->  [tile at layer 0, tile at layer 1, ...]

Each position also has a *surface* pointer: the tile the player can work
on right now.  It is the deepest-numbered tile in the stack that is still
unexcavated; once every tile in the stack has been dug it rests on
layer 0.  Tiles below the surface are inert until the ones above them are
excavated.  The pointer is moved by ``refresh()`` after excavation instead
of being recomputed on every lookup.

Layout
------
The grid is generated in a fixed shape:

* layer 0: every position of the ``size x size`` base;
* layer 1: the centre and its four orthogonal neighbours;
* layer 2: the centre only.

A layer is only laid down while it is shallower than ``site.layers``.
"""

from __future__ import annotations

import copy
import logging
from typing import Iterator, Optional

from world.site import Site
from world.tile import Tile

log = logging.getLogger(__name__)

Position = tuple[int, int]


class DigGrid:
    """Stacked tiles of a single site.

    Usage
    -----
        grid = DigGrid.generate(site)
        tile = grid.surface((1, 1))
        ...
        tile.excavate(at=now)
        grid.refresh((1, 1))
    """

    def __init__(self, site_id: str) -> None:
        self.site_id = site_id
        self._stacks:  dict[Position, list[Tile]] = {}
        self._by_id:   dict[str, Tile]            = {}
        self._surface: dict[Position, int]        = {}   # position -> index into stack

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def generate(cls, site: Site) -> "DigGrid":
        """Lay out the fixed grid for *site*."""
        grid   = cls(site.site_id)
        centre = (site.size // 2, site.size // 2)
        cx, cy = centre

        for y in range(site.size):
            for x in range(site.size):
                grid.add(Tile(site_id=site.site_id, position=(x, y), layer=0))

        if site.layers > 1:
            for pos in (centre, (cx, cy - 1), (cx - 1, cy), (cx + 1, cy), (cx, cy + 1)):
                if pos in grid._stacks:
                    grid.add(Tile(site_id=site.site_id, position=pos, layer=1))

        if site.layers > 2:
            grid.add(Tile(site_id=site.site_id, position=centre, layer=2))

        log.info("Generated %d tiles for %r", len(grid._by_id), site.name)
        return grid

    def add(self, tile: Tile) -> None:
        """Insert *tile* into its position's stack, keeping layer order."""
        if tile.tile_id in self._by_id:
            return
        stack = self._stacks.setdefault(tile.position, [])
        stack.append(tile)
        stack.sort(key=lambda t: t.layer)
        self._by_id[tile.tile_id] = tile
        self.refresh(tile.position)

    # ------------------------------------------------------------------
    # Surface pointer
    # ------------------------------------------------------------------

    def refresh(self, position: Position) -> Optional[Tile]:
        """Move the surface pointer of *position* to the correct tile."""
        stack = self._stacks.get(position)
        if not stack:
            return None
        index = 0
        for i in range(len(stack) - 1, -1, -1):
            if not stack[i].excavated:
                index = i
                break
        self._surface[position] = index
        return stack[index]

    def surface(self, position: Position) -> Optional[Tile]:
        """The workable tile at *position*, or None off-grid."""
        stack = self._stacks.get(position)
        if not stack:
            return None
        return stack[self._surface[position]]

    def is_interactable(self, tile_id: str) -> bool:
        tile = self._by_id.get(tile_id)
        if tile is None:
            return False
        return self.surface(tile.position) is tile

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def tile(self, tile_id: str) -> Optional[Tile]:
        return self._by_id.get(tile_id)

    def stack(self, position: Position) -> list[Tile]:
        """All tiles at *position*, layer 0 first."""
        return list(self._stacks.get(position, []))

    def positions(self) -> list[Position]:
        return sorted(self._stacks, key=lambda p: (p[1], p[0]))

    def tiles(self) -> Iterator[Tile]:
        return iter(self._by_id.values())

    def surface_tiles(self) -> list[Tile]:
        return [self.surface(pos) for pos in self.positions()]

    def snapshot(self) -> dict[str, Tile]:
        """Tile id -> deep copy, for renderers that must not touch live state."""
        return {tid: copy.deepcopy(t) for tid, t in self._by_id.items()}

    def __len__(self) -> int:
        return len(self._by_id)

    def __repr__(self) -> str:
        return f"<DigGrid site={self.site_id[:8]} tiles={len(self)}>"
