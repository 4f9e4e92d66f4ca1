"""SVG overlay construction for a wrapped caption.

WHY: The raster engine composites vector markup onto the source image.
This module decides where the caption's lines go and emits a standalone
SVG document, sized exactly to the image, holding only the caption text.

HOW: layout_caption() wraps the caption to 70% of the image width and
anchors the block to the bottom margin: the last line's baseline sits at
height - margin and earlier lines stack upward by one line height each.
render_svg() turns that layout into a <text> element with one <tspan> per
line using relative dy offsets. build_overlay() is the flat-argument entry
point that returns UTF-8 bytes ready for the raster engine.

RULES:
- Text width budget is floor(width * MAX_WIDTH_RATIO), independent of margin.
- Left aligned at x = margin; the block grows upward and may overflow the
  top edge for long captions (never truncated, never shrunk).
- First tspan dy is 0, every later tspan dy is line_height.
- All line text is escaped for & < >; attribute values are escaped too.
"""

import math
from typing import List

from .core import (
    escape_attr,
    escape_text,
    format_number,
    line_height_for,
    max_chars_per_line,
    outline_width_for,
    wrap_caption,
)
from .models import CaptionLayout, CaptionStyle, DEFAULT_FONT_FAMILY, ImageDimensions
from .presets import MAX_WIDTH_RATIO, OUTLINE_COLOR, SVG_NAMESPACE


def text_width_for(image_width: int) -> int:
    """Pixel width available to caption text on an image of image_width."""
    return int(math.floor(image_width * MAX_WIDTH_RATIO))


def layout_caption(
    dimensions: ImageDimensions, caption: str, style: CaptionStyle
) -> CaptionLayout:
    """Wrap a caption and compute its bottom-anchored position.

    Args:
        dimensions: Size of the image the caption is drawn on.
        caption: Caption text (already validated as non-blank upstream).
        style: Font size and margin are used here.

    Returns:
        CaptionLayout with the wrapped lines and anchor coordinates.
    """
    max_width = text_width_for(dimensions.width)
    lines = wrap_caption(caption, max_width, style.font_size)
    line_height = line_height_for(style.font_size)

    first_baseline_y = (
        dimensions.height - style.margin - max(len(lines) - 1, 0) * line_height
    )

    return CaptionLayout(
        lines=lines,
        x=style.margin,
        first_baseline_y=first_baseline_y,
        line_height=line_height,
        max_chars=max_chars_per_line(max_width, style.font_size),
    )


def render_svg(
    dimensions: ImageDimensions, layout: CaptionLayout, style: CaptionStyle
) -> str:
    """Render a computed layout as a standalone SVG document string."""
    x = format_number(layout.x)

    tspans = []  # type: List[str]
    for i, line in enumerate(layout.lines):
        dy = 0 if i == 0 else layout.line_height
        tspans.append('<tspan x="{}" dy="{}">{}</tspan>'.format(x, dy, escape_text(line)))

    text_attrs = [
        'x="{}"'.format(x),
        'y="{}"'.format(format_number(layout.first_baseline_y)),
        'font-family="{}"'.format(escape_attr(style.font_family)),
        'font-size="{}"'.format(format_number(style.font_size)),
        'fill="{}"'.format(escape_attr(style.text_color)),
    ]
    if style.outline:
        text_attrs.extend([
            'stroke="{}"'.format(OUTLINE_COLOR),
            'stroke-width="{}"'.format(outline_width_for(style.font_size)),
            'paint-order="stroke"',
        ])
    text_attrs.append('xml:space="preserve"')

    return (
        '<svg width="{w}" height="{h}" viewBox="0 0 {w} {h}" xmlns="{ns}">'
        "<text {attrs}>{spans}</text>"
        "</svg>"
    ).format(
        w=dimensions.width,
        h=dimensions.height,
        ns=SVG_NAMESPACE,
        attrs=" ".join(text_attrs),
        spans="".join(tspans),
    )


def build_overlay_svg(
    dimensions: ImageDimensions, caption: str, style: CaptionStyle
) -> str:
    """Lay out a caption and render it as an SVG document string."""
    layout = layout_caption(dimensions, caption, style)
    return render_svg(dimensions, layout, style)


def build_overlay(
    img_width: int,
    img_height: int,
    caption: str,
    font_size: float = 22,
    text_color: str = "#FFFFFF",
    margin: float = 16,
    font_family: str = DEFAULT_FONT_FAMILY,
    outline: bool = True,
) -> bytes:
    """Build the caption overlay for an image as UTF-8 SVG bytes.

    WHY: The raster engine consumes the overlay as a byte buffer. This is
    the flat-argument form used by callers that do not hold a CaptionStyle.

    RULES:
    - Output is sized exactly img_width x img_height.
    - Zero-area images and blank captions are rejected upstream, not here.

    Returns:
        The SVG document encoded as UTF-8.
    """
    style = CaptionStyle(
        font_size=font_size,
        text_color=text_color,
        margin=margin,
        font_family=font_family,
        outline=outline,
    )
    svg = build_overlay_svg(ImageDimensions(img_width, img_height), caption, style)
    return svg.encode("utf-8")
