"""
ui/status_panel.py
==================
Expedition sidebar for Mesopotamia Dig.

Responsibilities
----------------
- Render money, staff, the running task, the dig grid and collection
  counts.
- Read state from the ``GameSession``; never modify it.
- Subscribe to RESOURCE_CHANGED to show the most recent money movement.
- Never post events; never call command handlers.

Layout (top to bottom)
-----------------------
  TELL ABU SALABIKH
  medium / Ur III
  ─────────────────
  MONEY      $350   (-650)
  WORKERS     2/5
  ARCHAEOL.   1/2
  LINGUISTS   0/0
  ─────────────────
  EXCAVATION
  [=======     ] 60%
  ─────────────────
  ┌─┬─┬─┐
  │ │ │ │   grid of top tiles, layer digit in each cell
  └─┴─┴─┘
  ─────────────────
  INVENTORY  3 / 20
  MUSEUM     1
"""

from __future__ import annotations

import logging
from typing import Optional

import pygame

import config
from systems.event_queue import Event, EventType
from systems.session import GameSession
from ui.fonts import load_font
from world.player import Role
from world.tile import StructureType, Tile

log = logging.getLogger(__name__)

_BORDER      = config.COLOR_FAINT
_BAR_HEIGHT  = 8     # task bar height in pixels
_BAR_WIDTH   = 200   # task bar width in pixels
_CELL        = 34    # grid cell size in pixels
_SECTION_GAP = 10    # vertical gap between sections

# Fill colour of a grid cell by state
_CELL_UNDUG     = (96,  72,  44)
_CELL_DUG       = (48,  36,  24)
_CELL_FINDS     = (150, 110, 40)
_CELL_CAMP      = (70,  90,  110)
_CELL_SELECTED  = config.COLOR_INFO


class StatusPanel:
    """Renders a fixed-width status sidebar.

    Parameters
    ----------
    width, height:
        Panel size in pixels.
    session:
        The running game.
    font_path:
        Optional path to a .ttf monospace font.

    Usage
    -----
        panel = StatusPanel(width=340, height=700, session=session)

        # Each frame:
        panel.update()
        screen.blit(panel.surface, (940, 0))

        # On state exit:
        panel.teardown()
    """

    def __init__(
        self,
        width:     int,
        height:    int,
        session:   GameSession,
        font_path: Optional[str] = None,
        font_size: int = 14,
        padding:   int = 10,
    ) -> None:
        self._width   = width
        self._height  = height
        self._session = session
        self._padding = padding

        self._last_delta: int = 0

        self._font    = load_font(font_path, font_size)
        self._small   = load_font(font_path, max(10, font_size - 2))
        self._surface = pygame.Surface((width, height))

        self._session.events.subscribe(EventType.RESOURCE_CHANGED, self._on_resource_changed)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def surface(self) -> pygame.Surface:
        return self._surface

    def update(self) -> None:
        """Redraw the panel.  Call once per frame."""
        self._draw()

    def teardown(self) -> None:
        self._session.events.unsubscribe(EventType.RESOURCE_CHANGED, self._on_resource_changed)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _draw(self) -> None:
        surf = self._surface
        surf.fill(config.COLOR_BG)
        pygame.draw.line(surf, _BORDER, (0, 0), (0, self._height))

        y = self._padding
        y = self._draw_site(surf, y)
        y = self._draw_divider(surf, y)
        y = self._draw_expedition(surf, y)
        y = self._draw_divider(surf, y)
        y = self._draw_task(surf, y)
        y = self._draw_divider(surf, y)
        y = self._draw_grid(surf, y)
        y = self._draw_divider(surf, y)
        self._draw_collections(surf, y)

    def _draw_site(self, surf: pygame.Surface, y: int) -> int:
        site = self._session.current_site
        self._blit_text(surf, site.name.upper(), y, config.COLOR_FG, self._font)
        y += self._font.get_linesize()
        self._blit_text(
            surf, f"{site.difficulty.value} / {site.historical_period}",
            y, config.COLOR_FG_DIM, self._small,
        )
        return y + self._small.get_linesize()

    def _draw_expedition(self, surf: pygame.Surface, y: int) -> int:
        player = self._session.player
        delta  = f"({self._last_delta:+d})" if self._last_delta else ""
        colour = config.COLOR_SUCCESS if self._last_delta > 0 else config.COLOR_FG_DIM
        self._blit_text(surf, f"MONEY      ${player.money}", y, config.COLOR_FG, self._small)
        self._blit_text(surf, delta, y, colour, self._small, x=self._width - 90)
        y += self._small.get_linesize() + 2

        for role, label in (
            (Role.WORKER,        "WORKERS"),
            (Role.ARCHAEOLOGIST, "ARCHAEOL."),
            (Role.LINGUIST,      "LINGUISTS"),
        ):
            text = f"{label:<10} {player.available(role):>3}/{player.count(role)}"
            self._blit_text(surf, text, y, config.COLOR_FG_DIM, self._small)
            y += self._small.get_linesize()
        return y + _SECTION_GAP

    def _draw_task(self, surf: pygame.Surface, y: int) -> int:
        task = self._session.active_task
        if task is None:
            self._blit_text(surf, "NO TASK RUNNING", y, config.COLOR_FAINT, self._small)
            return y + self._small.get_linesize() + _SECTION_GAP

        self._blit_text(surf, task.task_type.value.upper(), y, config.COLOR_FG, self._small)
        y += self._small.get_linesize() + 2

        ratio = self._session.task_progress()
        pygame.draw.rect(surf, config.COLOR_FAINT, (self._padding, y, _BAR_WIDTH, _BAR_HEIGHT))
        fill_w = int(_BAR_WIDTH * ratio)
        if fill_w:
            pygame.draw.rect(surf, config.COLOR_FG, (self._padding, y, fill_w, _BAR_HEIGHT))
        self._blit_text(surf, f"{ratio:.0%}", y - 4, config.COLOR_FG_DIM, self._small,
                        x=self._padding + _BAR_WIDTH + 8)
        return y + _BAR_HEIGHT + _SECTION_GAP

    def _draw_grid(self, surf: pygame.Surface, y: int) -> int:
        """One cell per position showing the tile currently on top."""
        session  = self._session
        selected = set(session.active_task.tile_ids) if session.active_task else set()
        bottom   = y
        for x_pos, y_pos in session.grid.positions():
            tile = session.grid.surface((x_pos, y_pos))
            rect = pygame.Rect(
                self._padding + x_pos * (_CELL + 2),
                y + y_pos * (_CELL + 2),
                _CELL, _CELL,
            )
            pygame.draw.rect(surf, _cell_colour(tile), rect)
            if tile.tile_id in selected:
                pygame.draw.rect(surf, _CELL_SELECTED, rect, 2)
            label = self._small.render(str(tile.layer), True, config.COLOR_FG)
            surf.blit(label, (rect.x + 3, rect.y + 2))
            bottom = max(bottom, rect.bottom)

        self._blit_text(
            surf, f"{session.current_site.discovery_progress():.0%} dug to layer 0",
            bottom + 4, config.COLOR_FG_DIM, self._small,
        )
        return bottom + 4 + self._small.get_linesize() + _SECTION_GAP

    def _draw_collections(self, surf: pygame.Surface, y: int) -> int:
        inv = self._session.inventory
        colour = config.COLOR_WARNING if inv.is_full else config.COLOR_FG
        self._blit_text(surf, f"INVENTORY  {len(inv)} / {inv.capacity}", y, colour, self._small)
        y += self._small.get_linesize()

        storage = self._session.storage
        if storage is not None:
            self._blit_text(surf, f"DIG HOUSE  {len(storage)} / {storage.capacity}",
                            y, config.COLOR_FG_DIM, self._small)
            y += self._small.get_linesize()

        self._blit_text(surf, f"MUSEUM     {len(self._session.museum)}",
                        y, config.COLOR_FG_DIM, self._small)
        return y + self._small.get_linesize()

    def _draw_divider(self, surf: pygame.Surface, y: int) -> int:
        dy = y + 4
        pygame.draw.line(
            surf, _BORDER,
            (self._padding, dy),
            (self._width - self._padding, dy),
        )
        return dy + 8

    def _blit_text(
        self,
        surf:   pygame.Surface,
        text:   str,
        y:      int,
        colour: tuple[int, int, int],
        font:   pygame.font.Font,
        x:      Optional[int] = None,
    ) -> None:
        rendered = font.render(text, True, colour)
        surf.blit(rendered, (self._padding if x is None else x, y))

    # ------------------------------------------------------------------
    # Event subscribers
    # ------------------------------------------------------------------

    def _on_resource_changed(self, event: Event) -> None:
        delta = event.payload.get("delta", 0)
        if delta:
            self._last_delta = delta


def _cell_colour(tile: Tile) -> tuple[int, int, int]:
    if tile.structure in (StructureType.TENT, StructureType.DIG_HOUSE):
        return _CELL_CAMP
    if not tile.excavated:
        return _CELL_UNDUG
    return _CELL_FINDS if tile.artefacts else _CELL_DUG
