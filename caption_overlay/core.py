"""Core caption layout logic: line wrapping, sizing heuristics, and escaping.

WHY: A caption has to fit inside a fraction of the image width without any
font-rendering infrastructure at layout time. This module turns a caption
string into a list of lines using a fixed average-glyph-width estimate, and
provides the small sizing and escaping helpers the overlay builder needs.

HOW: The pipeline is a single greedy pass:
  1. max_chars_per_line(): converts a pixel width into a character budget
     using GLYPH_WIDTH_RATIO.
  2. wrap_caption(): accumulates whitespace-separated tokens onto lines
     while they fit the budget, hard-splitting tokens that never fit.
Helpers line_height_for(), outline_width_for(), escape_text() and
escape_attr() derive the remaining overlay values.

RULES:
- Token text is never modified; only where lines break.
- No produced line is longer than max_chars characters.
- Whitespace-only input yields an empty list; empty lines are never emitted.
- Functions are pure: no module state, safe to call from any thread.
"""

import math
import sys
from typing import List
from xml.sax.saxutils import escape

from .presets import GLYPH_WIDTH_RATIO, LINE_HEIGHT_RATIO, OUTLINE_WIDTH_RATIO

# =============================================================================
# Sizing Heuristics
# =============================================================================


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def max_chars_per_line(max_width_px: float, font_size_px: float) -> int:
    """Return how many characters fit in max_width_px at font_size_px.

    RULES:
    - avg glyph width = font_size_px * GLYPH_WIDTH_RATIO
    - Result is floored and never below 1.
    - A budget too large to represent (vanishingly small fonts) is capped
      at sys.maxsize, so every token fits.
    """
    avg_glyph_width = font_size_px * GLYPH_WIDTH_RATIO
    if avg_glyph_width == 0:
        return sys.maxsize
    budget = max_width_px / avg_glyph_width
    if not math.isfinite(budget) or budget >= sys.maxsize:
        return sys.maxsize
    return max(1, int(math.floor(budget)))


def line_height_for(font_size_px: float) -> int:
    """Baseline-to-baseline distance in whole pixels."""
    return int(math.floor(font_size_px * LINE_HEIGHT_RATIO))


def outline_width_for(font_size_px: float) -> int:
    """Outline stroke width in whole pixels, at least 1."""
    return max(1, round_half_up(font_size_px * OUTLINE_WIDTH_RATIO))


def format_number(value: float) -> str:
    """Render a coordinate for SVG: integral values without a trailing '.0'."""
    if float(value).is_integer():
        return str(int(value))
    return "{:g}".format(value)


# =============================================================================
# Escaping
# =============================================================================


def escape_text(s: str) -> str:
    """Escape the XML metacharacters & < > for use as element text."""
    return escape(s)


def escape_attr(s: str) -> str:
    """Escape a value for use inside a double-quoted XML attribute."""
    return escape(s, {'"': "&quot;"})


# =============================================================================
# Line Wrapping
# =============================================================================


def hard_split(token: str, max_chars: int) -> List[str]:
    """Split a token into consecutive chunks of at most max_chars characters."""
    return [token[i:i + max_chars] for i in range(0, len(token), max_chars)]


def wrap_caption(text: str, max_width_px: float, font_size_px: float) -> List[str]:
    """Wrap caption text into lines that fit max_width_px.

    WHY: The SVG renderer does not wrap text on its own. Lines must be
    decided up front, and without real font metrics, so the estimate is
    a fixed average glyph width.

    HOW: Greedy left-to-right fill. The caption is split on runs of
    whitespace. A token joins the current line if the joined line stays
    within max_chars; otherwise the current line is flushed and the token
    starts a new one. A token that alone exceeds max_chars flushes the
    current line and is hard-split into max_chars-sized chunks, each its
    own line.

    RULES:
    - Every returned line has 1..max_chars characters.
    - Tokens keep their order; only hard-split tokens are cut.
    - Blank input returns [].

    Args:
        text: Caption text, any whitespace.
        max_width_px: Width available to the text, in pixels (> 0).
        font_size_px: Font size in pixels (> 0).

    Returns:
        Wrapped lines, top to bottom.
    """
    max_chars = max_chars_per_line(max_width_px, font_size_px)
    lines = []  # type: List[str]
    line = ""

    for token in text.split():
        candidate = "{} {}".format(line, token) if line else token
        if len(candidate) <= max_chars:
            line = candidate
            continue

        if line:
            lines.append(line)

        if len(token) > max_chars:
            lines.extend(hard_split(token, max_chars))
            line = ""
        else:
            line = token

    if line:
        lines.append(line)

    return lines
