"""Data models for caption layout and overlay construction.

WHY: The overlay builder needs image dimensions and a handful of style
options, and callers (the HTTP pipeline, the CLI, tests) want to inspect
the computed layout without parsing SVG. Small dataclasses give each of
those a name.

HOW: ImageDimensions validates its values on construction. CaptionStyle
bundles the per-request styling options with the service defaults.
CaptionLayout is the pure result of laying out a caption: wrapped lines
plus their anchor coordinates.

RULES:
- ImageDimensions width/height must be positive integers.
- CaptionLayout.lines never contains empty strings.
- The block may extend above y=0 for long captions; nothing here clips it.
"""

from dataclasses import dataclass, field
from typing import List

DEFAULT_FONT_FAMILY = "DejaVu Sans, Arial, Helvetica, sans-serif"


@dataclass(frozen=True)
class ImageDimensions:
    """Pixel size of a (orientation-corrected) source image.

    Attributes:
        width: Width in pixels, > 0.
        height: Height in pixels, > 0.
    """
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                "Image dimensions must be positive, got {}x{}".format(
                    self.width, self.height
                )
            )


@dataclass
class CaptionStyle:
    """Styling options for the caption text element.

    Attributes:
        font_size: Font size in pixels.
        text_color: Any colour token the SVG renderer accepts.
        margin: Distance in pixels from the left and bottom edges.
        font_family: CSS font-family list.
        outline: Draw a dark stroke beneath the fill.
    """
    font_size: float = 22
    text_color: str = "#FFFFFF"
    margin: float = 16
    font_family: str = DEFAULT_FONT_FAMILY
    outline: bool = True


@dataclass
class CaptionLayout:
    """Wrapped caption lines and where they sit on the image.

    Attributes:
        lines: Wrapped lines, top to bottom.
        x: Left edge of every line (the margin).
        first_baseline_y: Baseline of the first (top) line.
        line_height: Vertical distance between consecutive baselines.
        max_chars: Per-line character budget used when wrapping.
    """
    lines: List[str] = field(default_factory=list)
    x: float = 0
    first_baseline_y: float = 0
    line_height: int = 0
    max_chars: int = 1

    @property
    def last_baseline_y(self) -> float:
        """Baseline of the bottom line (anchored at height - margin)."""
        return self.first_baseline_y + max(len(self.lines) - 1, 0) * self.line_height
