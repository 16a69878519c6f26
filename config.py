"""
config.py — Global configuration for mesopotamia_dig.

Process-level constants live here: paths, display, logging.  Game rules
(costs, probabilities, value tables) are NOT here; they live in
``data/rules.yaml`` and are loaded by ``systems/rules.py``.
Imported by any module that needs settings — never the other way around.
"""

import os

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

ROOT_DIR   = os.path.dirname(os.path.abspath(__file__))
ASSETS_DIR = os.path.join(ROOT_DIR, "assets")
DATA_DIR   = os.path.join(ROOT_DIR, "data")

RULES_PATH = os.path.join(DATA_DIR, "rules.yaml")
FONT_PATH  = os.path.join(ASSETS_DIR, "fonts", "terminal_font.ttf")

# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

DEFAULT_WIDTH  = 1280
DEFAULT_HEIGHT = 720
DEFAULT_FPS    = 60
WINDOW_TITLE   = "MESOPOTAMIA.DIG"

# Width reserved for the status panel on the right of the terminal
PANEL_WIDTH = 340

# ---------------------------------------------------------------------------
# Colour palette  (sun-baked clay on dark earth)
# ---------------------------------------------------------------------------

COLOR_BG        = (18,  14,  10)
COLOR_FG        = (232, 196, 140)
COLOR_FG_DIM    = (150, 120,  80)
COLOR_FAINT     = (70,   55,  38)
COLOR_SUCCESS   = (150, 210, 110)
COLOR_ERROR     = (230,  90,  70)
COLOR_WARNING   = (240, 190,  60)
COLOR_INFO      = (140, 180, 220)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL  = "WARNING"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

# None means a fresh random seed per run
DEFAULT_SEED = None
