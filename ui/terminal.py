"""
ui/terminal.py
==============
Field-journal terminal for Mesopotamia Dig.

Responsibilities
----------------
- Render a scrollable output buffer in clay tones on a dark surface.
- Accept player keyboard input and build an input line with a blinking cursor.
- Return the completed input string when Enter is pressed.
- Subscribe to NOTIFICATION events and print them coloured by severity.
- Never call game systems directly; it only reads ``CommandResult`` and
  notifications.

Rendering model
---------------
The terminal owns a pygame.Surface it draws onto each frame.  The caller
(game state) blits this surface wherever it wants; the terminal does not
know its own position on screen.  A faint scanline overlay is built once
and blitted on top.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Optional

import pygame

import config
from systems.command_handler import CommandResult
from systems.event_queue import Event, EventQueue, EventType, Severity
from ui.fonts import load_font

log = logging.getLogger(__name__)

Colour = tuple[int, int, int]

_SEVERITY_COLOURS: dict[Severity, Colour] = {
    Severity.SUCCESS: config.COLOR_SUCCESS,
    Severity.ERROR:   config.COLOR_ERROR,
    Severity.INFO:    config.COLOR_INFO,
    Severity.WARNING: config.COLOR_WARNING,
}

# Scanline alpha (0-255); higher = more visible scanlines
_SCANLINE_ALPHA = 25

# Cursor blink interval in seconds
_CURSOR_BLINK = 0.5

# Maximum lines held in the output buffer
_BUFFER_MAX = 500


class Terminal:
    """pygame-rendered command terminal.

    Parameters
    ----------
    width, height:
        Size of the terminal surface in pixels.
    events:
        Queue to read NOTIFICATION events from.
    font_path:
        Path to a .ttf monospace font file.  If None or missing, falls back
        to pygame's built-in monospace.
    prompt:
        The prompt string shown before the input line.

    Usage (inside a game state)
    ---------------------------
        terminal = Terminal(width=900, height=700, events=session.events)

        # Per frame:
        raw = terminal.handle_event(pygame_event)
        if raw is not None:
            terminal.print_result(handler.execute(raw))
        terminal.update()
        screen.blit(terminal.surface, (0, 0))
    """

    def __init__(
        self,
        width:     int,
        height:    int,
        events:    EventQueue,
        font_path: Optional[str] = None,
        font_size: int  = 16,
        padding:   int  = 12,
        prompt:    str  = "DIG> ",
    ) -> None:
        self._width   = width
        self._height  = height
        self._padding = padding
        self._prompt  = prompt
        self._events  = events

        self._font   = load_font(font_path, font_size)
        self._line_h = self._font.get_linesize()
        self._char_w = self._font.size("M")[0]   # monospace: all chars same width

        self._buffer: deque[tuple[str, Colour]] = deque(maxlen=_BUFFER_MAX)
        self._input_line: str = ""

        self._cursor_visible: bool  = True
        self._cursor_timer:   float = time.monotonic()

        # Scroll offset (lines from bottom; 0 = showing most recent)
        self._scroll: int = 0

        self._surface       = pygame.Surface((width, height))
        self._scanline_surf = self._build_scanline_surface(width, height)

        self._events.subscribe(EventType.NOTIFICATION, self._on_notification)

        self._print_banner()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def surface(self) -> pygame.Surface:
        return self._surface

    def handle_event(self, event: pygame.event.Event) -> Optional[str]:
        """Process a pygame event and update the input line.

        Returns
        -------
        str or None
            The completed input string when Enter is pressed, else None.
        """
        if event.type != pygame.KEYDOWN:
            return None

        if event.key == pygame.K_RETURN:
            completed        = self._input_line.strip()
            self._print(f"{self._prompt}{completed}", config.COLOR_FG_DIM)
            self._input_line = ""
            self._scroll     = 0   # snap to bottom on submit
            return completed if completed else None

        elif event.key == pygame.K_BACKSPACE:
            self._input_line = self._input_line[:-1]

        elif event.key == pygame.K_PAGEUP:
            max_scroll = max(0, len(self._buffer) - self._visible_lines())
            self._scroll = min(self._scroll + 3, max_scroll)

        elif event.key == pygame.K_PAGEDOWN:
            self._scroll = max(0, self._scroll - 3)

        elif event.unicode and event.unicode.isprintable():
            self._input_line += event.unicode

        return None

    def print_result(self, result: CommandResult) -> None:
        """Display a ``CommandResult``.

        Results whose text the session already announced are skipped;
        the notification carries the same line.
        """
        if result.notified:
            return
        colour = config.COLOR_FG if result.success else config.COLOR_ERROR
        for line in result.lines:
            self._print(line, colour)

    def print_line(self, text: str, colour: Colour = config.COLOR_FG) -> None:
        self._print(text, colour)

    def update(self) -> None:
        """Redraw the terminal surface.  Call once per frame."""
        self._update_cursor()
        self._draw()

    def teardown(self) -> None:
        """Unsubscribe from the event queue.  Call from ``on_exit()``."""
        self._events.unsubscribe(EventType.NOTIFICATION, self._on_notification)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _draw(self) -> None:
        surf = self._surface
        surf.fill(config.COLOR_BG)

        visible   = self._visible_lines()
        buf_list  = list(self._buffer)
        end_idx   = len(buf_list) - self._scroll
        start_idx = max(0, end_idx - visible)

        # Bottom two rows are the separator and the input line
        text_rows = visible - 2

        y = self._padding
        for text, colour in buf_list[start_idx:end_idx][-text_rows:]:
            surf.blit(self._font.render(text, True, colour), (self._padding, y))
            y += self._line_h

        sep_y = self._height - self._padding - self._line_h * 2 - 4
        pygame.draw.line(surf, config.COLOR_FAINT, (self._padding, sep_y),
                         (self._width - self._padding, sep_y), 1)

        input_y    = self._height - self._padding - self._line_h
        input_text = self._prompt + self._input_line
        surf.blit(self._font.render(input_text, True, config.COLOR_FG), (self._padding, input_y))

        if self._cursor_visible:
            cursor_x = self._padding + len(input_text) * self._char_w
            pygame.draw.rect(
                surf, config.COLOR_FG,
                (cursor_x, input_y, self._char_w, self._line_h - 2),
            )

        surf.blit(self._scanline_surf, (0, 0))

    def _update_cursor(self) -> None:
        now = time.monotonic()
        if now - self._cursor_timer >= _CURSOR_BLINK:
            self._cursor_visible = not self._cursor_visible
            self._cursor_timer   = now

    # ------------------------------------------------------------------
    # Buffer helpers
    # ------------------------------------------------------------------

    def _print(self, text: str, colour: Colour) -> None:
        for line in text.split("\n"):
            self._buffer.append((line, colour))

    def _visible_lines(self) -> int:
        return (self._height - self._padding * 2) // self._line_h

    def _print_banner(self) -> None:
        lines = [
            "+----------------------------------------------+",
            "|        M E S O P O T A M I A . D I G         |",
            "|         Field journal of the expedition      |",
            "+----------------------------------------------+",
            "",
            "  Camp pitched at the first tell.",
            "  Hire a crew, choose a method, and dig.",
            "",
            "  Type HELP for available commands.",
            "",
        ]
        for line in lines:
            self._print(line, config.COLOR_FG_DIM)

    # ------------------------------------------------------------------
    # Event subscribers
    # ------------------------------------------------------------------

    def _on_notification(self, event: Event) -> None:
        message  = event.payload.get("message", "")
        severity = event.payload.get("severity", Severity.INFO)
        self._print(f"  {message}", _SEVERITY_COLOURS.get(severity, config.COLOR_FG))

    # ------------------------------------------------------------------
    # Scanline surface
    # ------------------------------------------------------------------

    @staticmethod
    def _build_scanline_surface(width: int, height: int) -> pygame.Surface:
        """A dark line every two pixels, with per-pixel alpha."""
        surf = pygame.Surface((width, height), pygame.SRCALPHA)
        surf.fill((0, 0, 0, 0))
        for y in range(0, height, 2):
            pygame.draw.line(surf, (0, 0, 0, _SCANLINE_ALPHA), (0, y), (width, y))
        return surf
