"""
main.py
=======
Entry point for Mesopotamia Dig.

Desktop run:
    python main.py

HTML5 export:
    pip install pygbag
    pygbag .

pygbag requires an async main() with asyncio.sleep(0) each frame so the
browser event loop can breathe.  The same code runs on desktop unmodified.
"""

from __future__ import annotations

import asyncio
import logging

import pygame

import config
from gamestates.gameplay import GameplayState

logging.basicConfig(
    level  = config.LOG_LEVEL,
    format = config.LOG_FORMAT,
)


async def main() -> None:
    """Main async entry point, for both desktop and pygbag."""
    pygame.init()
    pygame.display.set_caption(config.WINDOW_TITLE)

    screen = pygame.display.set_mode((config.DEFAULT_WIDTH, config.DEFAULT_HEIGHT))
    clock  = pygame.time.Clock()

    gameplay = GameplayState(
        screen_width  = config.DEFAULT_WIDTH,
        screen_height = config.DEFAULT_HEIGHT,
        font_path     = config.FONT_PATH,
        seed          = config.DEFAULT_SEED,
    )
    gameplay.on_enter()

    running = True
    while running:
        events = pygame.event.get()
        for event in events:
            if event.type == pygame.QUIT:
                running = False

        if running and gameplay.update(events, screen):
            running = False

        pygame.display.flip()
        clock.tick(config.DEFAULT_FPS)

        # Required by pygbag
        await asyncio.sleep(0)

    gameplay.on_exit()
    pygame.quit()


if __name__ == "__main__":
    asyncio.run(main())
