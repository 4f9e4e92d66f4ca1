"""Configuration defaults, output format table, and .env loading.

WHY: Every caption option the HTTP form can omit has a documented default,
and deployments want to change those defaults (or the bind address)
without touching code. Centralizing them here keeps the orchestrator free
of scattered literals.

HOW: python-dotenv loads the .env file on import. Defaults are read from
the environment with fallbacks matching the documented values. The
output format table maps each format to its MIME type and file extension.

RULES:
- All caption defaults can be overridden via environment variables
- Output formats: webp (default), jpeg, png
- jpeg files use the ".jpg" extension
- Layout ratios are NOT configured here (see caption_overlay.presets)
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the service is started from)
load_dotenv()

# ---------------------------------------------------------------------------
# Output formats
# ---------------------------------------------------------------------------

OUTPUT_MEDIA_TYPES: dict[str, str] = {
    "webp": "image/webp",
    "jpeg": "image/jpeg",
    "png": "image/png",
}

OUTPUT_EXTENSIONS: dict[str, str] = {
    "webp": "webp",
    "jpeg": "jpg",
    "png": "png",
}

OUTPUT_ALIASES: dict[str, str] = {
    "jpg": "jpeg",
}
"""Accepted alternative spellings of output format names."""

OUTPUT_BASENAME = "captioned"

# ---------------------------------------------------------------------------
# Caption defaults
# ---------------------------------------------------------------------------

DEFAULT_FONT_SIZE = float(os.getenv("CAPTION_FONT_SIZE", "22"))
DEFAULT_TEXT_COLOR = os.getenv("CAPTION_TEXT_COLOR", "#FFFFFF")
DEFAULT_MARGIN = float(os.getenv("CAPTION_MARGIN", "16"))
DEFAULT_FONT_FAMILY = os.getenv(
    "CAPTION_FONT_FAMILY", "DejaVu Sans, Arial, Helvetica, sans-serif"
)
DEFAULT_OUTLINE = os.getenv("CAPTION_OUTLINE", "true").lower() == "true"
DEFAULT_OUTPUT = os.getenv("CAPTION_OUTPUT", "webp").lower()
DEFAULT_QUALITY = int(os.getenv("CAPTION_QUALITY", "92"))

MIN_FONT_SIZE = 1.0
MAX_FONT_SIZE = 2000.0
"""Accepted fontSize range in px; values outside it are rejected with a 400."""

# ---------------------------------------------------------------------------
# Server / client
# ---------------------------------------------------------------------------

API_HOST = os.getenv("CAPTION_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("CAPTION_API_PORT", "8000"))
API_URL = os.getenv("CAPTION_API_URL", "http://localhost:8000")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

PREVIEW_DEBOUNCE_S = 0.4
"""Quiet period before a preview request is sent after the last change."""
