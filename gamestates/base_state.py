"""
gamestates/base_state.py
========================
Interface every Mesopotamia Dig game state implements.

    on_enter()              Called once when the state becomes active.
    on_exit()               Called once when the state is left.
    update(events, screen)  Called every frame; returns a state-specific value.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import pygame


class BaseState(ABC):

    @abstractmethod
    def on_enter(self) -> None:
        """Build systems and widgets."""

    @abstractmethod
    def on_exit(self) -> None:
        """Release subscriptions."""

    @abstractmethod
    def update(
        self,
        events: list[pygame.event.Event],
        screen: pygame.Surface,
    ) -> Any:
        """Handle *events* and draw one frame onto *screen*."""
