"""Request orchestrator: validate, probe, compose, encode.

WHY: The HTTP endpoint, the CLI and tests all need the same captioning
behaviour. Keeping the four request stages in one transport-agnostic
module means the endpoint only translates form fields and exceptions,
and the CLI can run the exact same pipeline on a local file.

HOW: CaptionOptions.from_form() normalizes optional form values into a
typed options object once, at the boundary. render_caption() then runs
the strictly sequential stages:
  1. validate_request(): file present, caption non-blank
  2. raster.open_oriented(): decode + EXIF orientation, probe dimensions
  3. layout_caption() + render_svg() + raster.composite_overlay(): draw the caption
  4. raster.encode_image(): recompress in the requested format

RULES:
- Every failure is a CaptionError subclass carrying an HTTP status code
- Missing input and unreadable images are 400s, raised before overlay work
- Composite/encode failures are wrapped in RenderError (500)
- The caption is stripped before layout
- No state survives a call; nothing is retried
- Python 3.9+ compatible (no match/case, no PEP 604 unions at runtime)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from caption_overlay import CaptionLayout, CaptionStyle, layout_caption
from caption_overlay.overlay import render_svg
from photo_captioner import config
from photo_captioner.raster import (
    UnreadableImageError as _RasterUnreadable,
    composite_overlay,
    encode_image,
    open_oriented,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class CaptionError(Exception):
    """Base class for request-scoped captioning failures.

    RULES:
    - status_code is the HTTP status the API responds with
    - str(exc) is the client-facing error message
    """

    status_code = 500


class MissingInputError(CaptionError):
    """No file payload, or a caption that is blank after trimming."""

    status_code = 400


class InvalidOptionError(CaptionError, ValueError):
    """An optional form value could not be parsed or is out of range."""

    status_code = 400


class UnreadableImageError(CaptionError):
    """The uploaded bytes could not be decoded into a sized image."""

    status_code = 400


class RenderError(CaptionError):
    """The raster engine failed while compositing or encoding."""

    status_code = 500


# ---------------------------------------------------------------------------
# Options and request models
# ---------------------------------------------------------------------------


class OutputFormat(str, Enum):
    """Encodings the service can return.

    RULES:
    - Values match keys in config.OUTPUT_MEDIA_TYPES exactly
    """

    webp = "webp"
    jpeg = "jpeg"
    png = "png"

    @property
    def media_type(self) -> str:
        return config.OUTPUT_MEDIA_TYPES[self.value]

    @property
    def extension(self) -> str:
        return config.OUTPUT_EXTENSIONS[self.value]

    @classmethod
    def parse(cls, value: str) -> OutputFormat:
        """Resolve a case-insensitive format name (or alias) to a member."""
        key = value.strip().lower()
        key = config.OUTPUT_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise InvalidOptionError(
                "Unknown output format '{}'. Available: {}".format(
                    value, ", ".join(m.value for m in cls)
                )
            )


def _parse_number(name: str, raw: Optional[str], default: float) -> float:
    """Parse an optional numeric form field, falling back to default."""
    if raw is None or not str(raw).strip():
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidOptionError("{} must be a number, got '{}'".format(name, raw))
    if not math.isfinite(value):
        raise InvalidOptionError("{} must be a finite number".format(name))
    return value


def _parse_text(name: str, raw: Optional[str], default: str) -> str:
    if raw is None:
        return default
    if not raw.strip():
        raise InvalidOptionError("{} must not be blank".format(name))
    return raw.strip()


@dataclass
class CaptionOptions:
    """Normalized styling and encoding options for one request.

    Attributes:
        font_size: Font size in px (> 0).
        text_color: Colour token passed through to the SVG fill.
        margin: Left/bottom margin in px (>= 0).
        font_family: CSS font-family list.
        outline: Draw a dark stroke beneath the text.
        output: Output encoding.
        quality: 0-100, used by webp and jpeg.
    """

    font_size: float = config.DEFAULT_FONT_SIZE
    text_color: str = config.DEFAULT_TEXT_COLOR
    margin: float = config.DEFAULT_MARGIN
    font_family: str = config.DEFAULT_FONT_FAMILY
    outline: bool = config.DEFAULT_OUTLINE
    output: OutputFormat = field(
        default_factory=lambda: OutputFormat.parse(config.DEFAULT_OUTPUT)
    )
    quality: int = config.DEFAULT_QUALITY

    @classmethod
    def from_form(
        cls,
        font_size: Optional[str] = None,
        text_color: Optional[str] = None,
        margin: Optional[str] = None,
        font_family: Optional[str] = None,
        outline: Optional[str] = None,
        output: Optional[str] = None,
        quality: Optional[str] = None,
    ) -> CaptionOptions:
        """Build options from raw form strings, applying defaults.

        WHY: Form fields arrive as optional strings. Normalizing them once
        here keeps the layout functions free of ad hoc optional handling.

        RULES:
        - None (field omitted) means "use the configured default"
        - outline is True only for "true" (case-insensitive)
        - font_size within MIN_FONT_SIZE..MAX_FONT_SIZE, margin >= 0,
          quality in 0..100
        - Raises InvalidOptionError on any invalid value

        Returns:
            A fully populated CaptionOptions.
        """
        defaults = cls()

        size = _parse_number("fontSize", font_size, defaults.font_size)
        if size < config.MIN_FONT_SIZE or size > config.MAX_FONT_SIZE:
            raise InvalidOptionError(
                "fontSize must be between {:g} and {:g}".format(
                    config.MIN_FONT_SIZE, config.MAX_FONT_SIZE
                )
            )

        margin_px = _parse_number("margin", margin, defaults.margin)
        if margin_px < 0:
            raise InvalidOptionError("margin must not be negative")

        q = _parse_number("quality", quality, defaults.quality)
        if q < 0 or q > 100:
            raise InvalidOptionError("quality must be between 0 and 100")

        outline_on = defaults.outline
        if outline is not None:
            outline_on = outline.strip().lower() == "true"

        fmt = defaults.output
        if output is not None and output.strip():
            fmt = OutputFormat.parse(output)

        return cls(
            font_size=size,
            text_color=_parse_text("textColor", text_color, defaults.text_color),
            margin=margin_px,
            font_family=_parse_text("fontFamily", font_family, defaults.font_family),
            outline=outline_on,
            output=fmt,
            quality=int(round(q)),
        )

    def to_style(self) -> CaptionStyle:
        """The subset of options the overlay builder uses."""
        return CaptionStyle(
            font_size=self.font_size,
            text_color=self.text_color,
            margin=self.margin,
            font_family=self.font_family,
            outline=self.outline,
        )


@dataclass
class CaptionRequest:
    """One captioning request: source bytes, caption and options."""

    image_bytes: Optional[bytes]
    caption: Optional[str]
    options: CaptionOptions = field(default_factory=CaptionOptions)


@dataclass
class RenderedImage:
    """The encoded result of a captioning request.

    Attributes:
        content: Encoded image bytes.
        output: The encoding used.
        layout: Caption layout that was drawn.
    """

    content: bytes
    output: OutputFormat
    layout: CaptionLayout

    @property
    def media_type(self) -> str:
        return self.output.media_type

    @property
    def filename(self) -> str:
        return "{}.{}".format(config.OUTPUT_BASENAME, self.output.extension)


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


def validate_request(image_bytes: Optional[bytes], caption: Optional[str]) -> str:
    """Check required inputs and return the trimmed caption.

    RULES:
    - Missing or empty file payload -> MissingInputError("file is required")
    - Caption blank after strip -> MissingInputError("caption is required")
    """
    if not image_bytes:
        raise MissingInputError("file is required")
    if caption is None or not caption.strip():
        raise MissingInputError("caption is required")
    return caption.strip()


def render_caption(request: CaptionRequest) -> RenderedImage:
    """Run the full validate -> probe -> compose -> encode pipeline.

    WHY: This is the single operation behind POST /api/caption and the
    local CLI. It is synchronous and CPU-bound; async callers should run
    it in a worker thread.

    HOW: Each stage either returns its product for the next stage or
    raises a CaptionError subclass. There is no branching back.

    RULES:
    - Validation and probing failures happen before any overlay work
    - The overlay is sized to the orientation-corrected image
    - Raster engine failures after probing become RenderError

    Args:
        request: Source bytes, caption and normalized options.

    Returns:
        RenderedImage with the encoded bytes, format and layout.
    """
    caption = validate_request(request.image_bytes, request.caption)
    options = request.options

    try:
        image, dimensions = open_oriented(request.image_bytes)
    except _RasterUnreadable as exc:
        raise UnreadableImageError(str(exc)) from exc

    style = options.to_style()
    layout = layout_caption(dimensions, caption, style)
    svg = render_svg(dimensions, layout, style).encode("utf-8")
    logger.debug(
        "Laid out %d line(s) on %dx%d image", len(layout.lines),
        dimensions.width, dimensions.height,
    )

    try:
        composited = composite_overlay(image, svg)
        content = encode_image(composited, options.output.value, options.quality)
    except Exception as exc:
        logger.exception("Rendering failed for %dx%d image", dimensions.width, dimensions.height)
        raise RenderError("failed to render captioned image") from exc

    logger.info(
        "Rendered %s (%d bytes, %d caption line(s))",
        options.output.value, len(content), len(layout.lines),
    )
    return RenderedImage(content=content, output=options.output, layout=layout)
