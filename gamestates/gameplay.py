"""
gamestates/gameplay.py
======================
Core gameplay state for Mesopotamia Dig.

Responsibilities
----------------
- Construct and own the ``GameSession`` for a single expedition.
- Own the terminal and status panel UI widgets.
- Drive the per-frame loop: input -> command -> session.update() -> flush.
- Never contain rendering logic beyond layout; delegate to UI widgets.

Layout
------
    ┌────────────────────────────┬────────────────┐
    │                            │                │
    │        terminal            │  status panel  │
    │      (left portion)        │  (PANEL_WIDTH) │
    │                            │                │
    └────────────────────────────┴────────────────┘

Frame flow
----------
    1. Terminal receives keypress -> returns completed input string.
    2. CommandHandler.execute() -> CommandResult, printed unless the
       session already announced it.
    3. session.update() completes the running task once it is due.
    4. session.flush_events() delivers notifications to the terminal and
       resource changes to the panel.
    5. Widgets redraw.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

import pygame

import config
from gamestates.base_state import BaseState
from systems.command_handler import CommandHandler
from systems.event_queue import Event, EventQueue, EventType
from systems.rules import Rules, load_rules
from systems.session import GameSession
from ui.status_panel import StatusPanel
from ui.terminal import Terminal

log = logging.getLogger(__name__)


class GameplayState(BaseState):
    """Owns the session and UI for one expedition.

    Parameters
    ----------
    screen_width, screen_height:
        Display size in pixels.
    font_path:
        Optional path to a monospace .ttf font shared across widgets.
    seed:
        Seed for every random roll.  None for a random seed.
    rules:
        Ruleset; loaded from ``config.RULES_PATH`` when omitted.

    Usage
    -----
        state = GameplayState(screen_width=1280, screen_height=720)
        state.on_enter()

        # Game loop:
        done = state.update(events, screen)
    """

    def __init__(
        self,
        screen_width:  int,
        screen_height: int,
        font_path:     Optional[str]   = None,
        seed:          Optional[int]   = None,
        rules:         Optional[Rules] = None,
    ) -> None:
        self._sw        = screen_width
        self._sh        = screen_height
        self._font_path = font_path
        self._seed      = seed if seed is not None else random.randrange(2 ** 32)
        self._rules     = rules

        self._quit: bool = False

        # Initialised in on_enter()
        self._session:  Optional[GameSession]    = None
        self._cmd:      Optional[CommandHandler] = None
        self._terminal: Optional[Terminal]       = None
        self._panel:    Optional[StatusPanel]    = None

        self._terminal_rect: pygame.Rect = pygame.Rect(0, 0, 0, 0)
        self._panel_rect:    pygame.Rect = pygame.Rect(0, 0, 0, 0)

    # ------------------------------------------------------------------
    # BaseState interface
    # ------------------------------------------------------------------

    def on_enter(self) -> None:
        log.info("GameplayState.on_enter: seed=%d", self._seed)

        rules  = self._rules if self._rules is not None else load_rules()
        events = EventQueue()
        self._session = GameSession(
            rules  = rules,
            rng    = random.Random(self._seed),
            events = events,
        )
        self._cmd = CommandHandler(self._session)

        terminal_w = self._sw - config.PANEL_WIDTH
        self._terminal_rect = pygame.Rect(0, 0, terminal_w, self._sh)
        self._panel_rect    = pygame.Rect(terminal_w, 0, config.PANEL_WIDTH, self._sh)

        self._terminal = Terminal(
            width     = terminal_w,
            height    = self._sh,
            events    = events,
            font_path = self._font_path,
        )
        self._panel = StatusPanel(
            width     = config.PANEL_WIDTH,
            height    = self._sh,
            session   = self._session,
            font_path = self._font_path,
        )

        events.subscribe(EventType.QUIT_REQUESTED, self._on_quit)

    def on_exit(self) -> None:
        if self._terminal:
            self._terminal.teardown()
        if self._panel:
            self._panel.teardown()
        if self._session:
            self._session.events.unsubscribe(EventType.QUIT_REQUESTED, self._on_quit)
        log.info("GameplayState.on_exit")

    def update(
        self,
        events: list[pygame.event.Event],
        screen: pygame.Surface,
    ) -> bool:
        """Process input, advance the session, draw everything.

        Returns
        -------
        bool
            ``True`` once the player has asked to quit.
        """
        for event in events:
            completed = self._terminal.handle_event(event)
            if completed:
                self._terminal.print_result(self._cmd.execute(completed))

        self._session.update()
        self._session.flush_events()

        self._draw(screen)
        return self._quit

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _draw(self, screen: pygame.Surface) -> None:
        screen.fill(config.COLOR_BG)

        self._terminal.update()
        screen.blit(self._terminal.surface, self._terminal_rect.topleft)

        self._panel.update()
        screen.blit(self._panel.surface, self._panel_rect.topleft)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_quit(self, event: Event) -> None:
        self._quit = True
