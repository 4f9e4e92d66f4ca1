"""Caption layout and SVG overlay library.

WHY: Captioning an image needs two pure steps before any pixels are
touched: wrap the caption to fit the image and describe it as vector
markup the raster engine can composite. This package holds those steps
with no dependency on image decoding or HTTP, so they can be tested and
reused on their own.

HOW: wrap_caption() (core) decides the lines; build_overlay() (overlay)
positions them bottom-left and emits an SVG document as bytes.
layout_caption() exposes the computed positions without rendering.

RULES:
- build_overlay() and wrap_caption() are the public entry points.
- No global state; every call works on its own locals.
- Python 3.9 compatible (no match/case, no X | Y unions).
"""

from .core import escape_text, max_chars_per_line, wrap_caption
from .models import CaptionLayout, CaptionStyle, DEFAULT_FONT_FAMILY, ImageDimensions
from .overlay import build_overlay, build_overlay_svg, layout_caption

__all__ = [
    "wrap_caption",
    "build_overlay",
    "build_overlay_svg",
    "layout_caption",
    "max_chars_per_line",
    "escape_text",
    "CaptionLayout",
    "CaptionStyle",
    "ImageDimensions",
    "DEFAULT_FONT_FAMILY",
]
