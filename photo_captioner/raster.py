"""Raster engine adapter: decode, composite an SVG overlay, and encode.

WHY: Decoding uploads, drawing vector text and recompressing the result
are image-library work the caption logic should never touch directly.
This module is the single seam between the orchestrator and the imaging
libraries, so the rest of the service only sees bytes, dimensions and
Pillow images.

HOW: Pillow decodes the upload and applies EXIF orientation. CairoSVG
rasterizes the overlay SVG to a transparent PNG at the image's exact size,
which Pillow alpha-composites over the source. Pillow then encodes to the
requested format.

RULES:
- open_oriented() raises UnreadableImageError for anything Pillow cannot
  decode or that has no usable size
- Compositing always happens in RGBA; JPEG output is flattened to RGB
- JPEG uses optimized Huffman tables + progressive scan; PNG is lossless
- cairosvg is imported lazily in the render path so a missing native
  Cairo library only fails requests that render, not service startup
"""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from caption_overlay.models import ImageDimensions

logger = logging.getLogger(__name__)


class UnreadableImageError(ValueError):
    """Raised when the source bytes cannot be decoded into a sized image."""


def open_oriented(data: bytes) -> tuple[Image.Image, ImageDimensions]:
    """Decode image bytes and apply any embedded EXIF orientation.

    WHY: Phone photos are often stored sideways with an orientation tag.
    The caption must be laid out against the image as it is displayed,
    so dimensions are probed after the orientation correction.

    HOW: Image.open() + ImageOps.exif_transpose(), which also forces the
    pixel data to load so truncated files fail here, not later.

    RULES:
    - Returns the corrected image and its dimensions
    - Raises UnreadableImageError on decode failure or zero dimensions

    Args:
        data: Raw uploaded bytes.

    Returns:
        Tuple of (oriented image, ImageDimensions).
    """
    try:
        img = Image.open(io.BytesIO(data))
        img = ImageOps.exif_transpose(img)
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        logger.info("Could not decode uploaded image: %s", exc)
        raise UnreadableImageError("could not read image dimensions") from exc

    width, height = img.size
    if not width or not height:
        raise UnreadableImageError("could not read image dimensions")

    return img, ImageDimensions(width, height)


def rasterize_overlay(svg: bytes, dimensions: ImageDimensions) -> Image.Image:
    """Render SVG overlay bytes to an RGBA image of exactly the given size."""
    import cairosvg

    png_bytes = cairosvg.svg2png(
        bytestring=svg,
        output_width=dimensions.width,
        output_height=dimensions.height,
    )
    with Image.open(io.BytesIO(png_bytes)) as overlay:
        return overlay.convert("RGBA")


def composite_overlay(image: Image.Image, svg: bytes) -> Image.Image:
    """Draw an SVG overlay on top of an image and return the RGBA result."""
    base = image.convert("RGBA")
    dimensions = ImageDimensions(base.width, base.height)
    overlay = rasterize_overlay(svg, dimensions)
    logger.debug("Compositing %dx%d overlay", dimensions.width, dimensions.height)
    return Image.alpha_composite(base, overlay)


def encode_image(image: Image.Image, output: str, quality: int) -> bytes:
    """Encode an image as webp, jpeg or png.

    RULES:
    - webp: lossy at the given quality
    - jpeg: RGB, given quality, optimize + progressive
    - png: lossless, quality ignored
    - Any other format raises ValueError
    """
    buffer = io.BytesIO()
    if output == "jpeg":
        image.convert("RGB").save(
            buffer, format="JPEG", quality=quality, optimize=True, progressive=True
        )
    elif output == "png":
        image.save(buffer, format="PNG")
    elif output == "webp":
        image.save(buffer, format="WEBP", quality=quality)
    else:
        raise ValueError("Unsupported output format '{}'".format(output))
    return buffer.getvalue()
