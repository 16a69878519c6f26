"""
ui/fonts.py
===========
Font loading shared by the terminal and the status panel.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pygame

log = logging.getLogger(__name__)


def load_font(font_path: Optional[str], size: int) -> pygame.font.Font:
    """Load a font from *font_path*, falling back to pygame's monospace.

    Parameters
    ----------
    font_path:
        Path to a .ttf file, or None.
    size:
        Font size in points.
    """
    if font_path:
        path = Path(font_path)
        if path.exists():
            try:
                return pygame.font.Font(str(path), size)
            except (pygame.error, OSError) as exc:
                log.warning("Could not load font %r: %s; using fallback.", font_path, exc)
    return pygame.font.SysFont("monospace", size)
