"""Configuration constants, canvas defaults, and .env loading.

WHY: Canvas geometry, wrap thresholds, raster quality and file locations
are tuning knobs that should be easy to find and override without touching
the layout code. Keeping them as plain module-level values makes them
obvious to both humans and tests.

HOW: python-dotenv loads the .env file on import. Each value is read from
the environment with a hard-coded fallback. Numeric values are parsed by
small helpers that fail loudly with the variable name on bad input.

RULES:
- Every default matches the reference export card (800x600, margin 40)
- Unset EXPORT_FONT_PATH falls back to well-known CJK font locations,
  then to Pillow's built-in font
- JPEG quality is expressed as a 0–1 fraction, like a browser canvas
- Invalid numbers raise ValueError naming the variable
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load .env from the project root (where the command is run from)
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError("{} must be an integer, got {!r}".format(name, raw))


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError("{} must be a number, got {!r}".format(name, raw))


# ---------------------------------------------------------------------------
# Canvas and layout defaults
# ---------------------------------------------------------------------------

CANVAS_WIDTH = _env_int("EXPORT_CANVAS_WIDTH", 800)
CANVAS_HEIGHT = _env_int("EXPORT_CANVAS_HEIGHT", 600)
MARGIN = _env_int("EXPORT_MARGIN", 40)
ROW_HEIGHT = _env_int("EXPORT_ROW_HEIGHT", 40)
TOKEN_GAP = _env_int("EXPORT_TOKEN_GAP", 10)
TRANSLATION_LINE_CHARS = _env_int("EXPORT_TRANSLATION_LINE_CHARS", 35)

JPEG_QUALITY = _env_float("EXPORT_JPEG_QUALITY", 0.9)
"""Lossy raster quality as a 0–1 fraction (0.9 → Pillow quality=90)."""

BACKGROUND_COLOR = "#f7f2fa"
TEXT_COLOR = "#1d1b20"
SENTENCE_COLOR = "#2c3e50"
CHIP_TEXT_COLOR = "#000000"
TIMESTAMP_COLOR = "#666666"

# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------

FONT_PATH = os.getenv("EXPORT_FONT_PATH", "").strip() or None

FONT_CANDIDATES: List[str] = [
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/truetype/fonts-japanese-gothic.ttf",
    "/usr/share/fonts/truetype/takao-gothic/TakaoPGothic.ttf",
    "/usr/share/fonts/truetype/vlgothic/VL-Gothic-Regular.ttf",
    "/System/Library/Fonts/Hiragino Sans GB.ttc",
    "C:/Windows/Fonts/msgothic.ttc",
    "C:/Windows/Fonts/meiryo.ttc",
]
"""Fallback CJK font files, tried in order when EXPORT_FONT_PATH is unset."""


def find_font_path() -> Optional[str]:
    """Return the first usable CJK font file, or None.

    RULES:
    - An explicitly configured EXPORT_FONT_PATH wins if the file exists
    - Otherwise the first existing FONT_CANDIDATES entry is returned
    - None means "use Pillow's built-in font"
    """
    candidates = ([FONT_PATH] if FONT_PATH else []) + FONT_CANDIDATES
    for candidate in candidates:
        if os.path.isfile(candidate):
            return candidate
    return None


# ---------------------------------------------------------------------------
# History storage
# ---------------------------------------------------------------------------

HISTORY_PATH = Path(
    os.getenv("ANALYSIS_HISTORY_PATH", "").strip()
    or Path.home() / ".japanese_analysis" / "history.json"
)
HISTORY_LIMIT = _env_int("ANALYSIS_HISTORY_LIMIT", 100)
