"""Layout constants for caption wrapping and SVG overlay construction.

WHY: The layout engine does no font-metric measurement. Every
size decision is derived from the font size and image width through a
handful of fixed ratios. Keeping those ratios here as named constants
makes them easy to find and keeps the layout functions free of magic
numbers.

HOW: Plain module-level floats and strings. The overlay builder and the
layout engine import what they need.

RULES:
- These are fixed heuristics, not user options; never expose them as
  request parameters.
- Changing a ratio changes every rendered caption; update tests with it.
"""

GLYPH_WIDTH_RATIO = 0.6
"""Average glyph width as a fraction of the font size (px)."""

LINE_HEIGHT_RATIO = 1.35
"""Line height as a multiple of the font size, floored to whole pixels."""

MAX_WIDTH_RATIO = 0.7
"""Fraction of the image width available to caption text, regardless of margin."""

OUTLINE_WIDTH_RATIO = 0.06
"""Outline stroke width as a fraction of the font size (minimum 1px)."""

OUTLINE_COLOR = "black"

SVG_NAMESPACE = "http://www.w3.org/2000/svg"
