"""
systems/event_queue.py
======================
Message bus for Mesopotamia Dig.

Architecture
------------
This module is decoupled from pygame, game states, and any rendering
code.  It connects the game session to whatever front end is listening
(terminal, status panel, tests) without either side holding a reference
to the other.

There is no module-level instance: the ``GameSession`` owns one and hands
it to the widgets that subscribe.

Typical per-frame flow in GameplayState.update()
-------------------------------------------------
    session.update()      # may post TASK_COMPLETED, ARTEFACT_FOUND, ...
    events.flush()        # deliver everything posted since the last frame

Subscriber protocol
-------------------
Any callable ``handler(event: Event) -> None`` can subscribe to an event
type.  Handlers are called in registration order.  A handler that raises
is logged and skipped; the remaining handlers still run.
"""

from __future__ import annotations

import enum
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------

class EventType(enum.Enum):
    """Every event the session can announce.

    Adding a new event
    ------------------
    1. Add a member here.
    2. Post it via ``EventQueue.post_immediate()``.
    3. Subscribe a handler where it matters.
    """

    # --- Player-facing messages ---
    NOTIFICATION        = "notification"         # payload: message, severity

    # --- Resources ---
    RESOURCE_CHANGED    = "resource_changed"     # money or personnel delta

    # --- Tasks ---
    TASK_STARTED        = "task_started"
    TASK_COMPLETED      = "task_completed"
    TASK_CANCELLED      = "task_cancelled"

    # --- Dig site ---
    TILE_EXCAVATED      = "tile_excavated"
    STRUCTURE_PLACED    = "structure_placed"
    SITE_DISCOVERED     = "site_discovered"

    # --- Artefacts ---
    ARTEFACT_FOUND      = "artefact_found"
    ARTEFACT_IDENTIFIED = "artefact_identified"
    ARTEFACT_SOLD       = "artefact_sold"
    ARTEFACT_DROPPED    = "artefact_dropped"     # inventory full, find lost

    # --- System ---
    COMMAND_ENTERED     = "command_entered"
    QUIT_REQUESTED      = "quit_requested"


class Severity(enum.Enum):
    """Tag on NOTIFICATION events; decides colour in the terminal."""
    SUCCESS = "success"
    ERROR   = "error"
    INFO    = "info"
    WARNING = "warning"


# ---------------------------------------------------------------------------
# Event dataclass
# ---------------------------------------------------------------------------

@dataclass
class Event:
    """Event record passed to subscribers.

    Parameters
    ----------
    type:
        The ``EventType`` that identifies this event.
    payload:
        Flat dict with string keys so handlers can read it without imports.
    source:
        Optional tag for debugging (e.g. ``"GameSession"``).
    """

    type:    EventType
    payload: dict[str, Any] = field(default_factory=dict)
    source:  str            = ""

    def __repr__(self) -> str:
        src = f" from={self.source!r}" if self.source else ""
        return f"<Event {self.type.name}{src}>"


Handler = Callable[[Event], None]


# ---------------------------------------------------------------------------
# EventQueue
# ---------------------------------------------------------------------------

class EventQueue:
    """Central message bus.

    Usage
    -----
        events = EventQueue()
        events.subscribe(EventType.ARTEFACT_FOUND, my_handler)
        events.post_immediate(EventType.ARTEFACT_FOUND, {"name": "..."})
        events.flush()

    Events stay pending until the owner calls ``flush()``.  The gameplay
    state flushes once per frame; scripts driving a ``GameSession``
    directly call ``GameSession.flush_events()``.
    """

    def __init__(self) -> None:
        self._pending: list[Event] = []
        self._subscribers: defaultdict[EventType, list[Handler]] = defaultdict(list)
        self._flushing: bool = False   # re-entrancy guard

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        """Register *handler* for *event_type*; duplicates are ignored."""
        handlers = self._subscribers[event_type]
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_type: EventType, handler: Handler) -> None:
        """Remove *handler*.  Safe to call if it was never registered."""
        handlers = self._subscribers[event_type]
        try:
            handlers.remove(handler)
        except ValueError:
            pass

    def unsubscribe_all(self, handler: Handler) -> None:
        """Remove *handler* from every event type.  Call from ``on_exit()``."""
        for handlers in self._subscribers.values():
            try:
                handlers.remove(handler)
            except ValueError:
                pass

    # ------------------------------------------------------------------
    # Posting events
    # ------------------------------------------------------------------

    def post(self, event: Event) -> None:
        """Enqueue *event* for the next ``flush()``."""
        self._pending.append(event)
        log.debug("Enqueued %r", event)

    def post_immediate(
        self,
        event_type: EventType,
        payload:    dict[str, Any] | None = None,
        source:     str = "",
    ) -> None:
        """Convenience wrapper to build and post an ``Event``."""
        self.post(Event(type=event_type, payload=payload or {}, source=source))

    def notify(self, message: str, severity: Severity = Severity.INFO, source: str = "") -> None:
        """Post a player-facing NOTIFICATION."""
        self.post_immediate(
            EventType.NOTIFICATION,
            {"message": message, "severity": severity},
            source=source,
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def flush(self) -> None:
        """Dispatch all pending events to their subscribers.

        Events posted by a handler during dispatch are delivered in the
        same flush (breadth-first).  Events with no subscribers are
        dropped and logged at DEBUG level.
        """
        if self._flushing:
            return

        self._flushing = True
        try:
            i = 0
            while i < len(self._pending):
                event    = self._pending[i]
                handlers = list(self._subscribers.get(event.type, []))
                if not handlers:
                    log.debug("No subscribers for %r", event)
                for handler in handlers:
                    try:
                        handler(event)
                    except Exception:
                        log.exception("Handler %r raised while processing %r", handler, event)
                i += 1
        finally:
            self._pending.clear()
            self._flushing = False

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def __repr__(self) -> str:
        return f"<EventQueue pending={self.pending_count}>"
