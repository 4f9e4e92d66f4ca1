"""Shared test fixtures for the photo captioner test suite.

WHY: Several test modules need small in-memory source images and a way
to skip tests that rasterize SVG when the native Cairo library is not
installed. Centralizing them here keeps image construction consistent.

HOW: Pillow builds images in memory and encodes them to bytes. The
``cairo`` fixture imports cairosvg and skips the test if either the
package or its native library is missing. ``passthrough_composite``
replaces the SVG compositing step with a no-op so API and pipeline tests
can exercise encoding and headers without Cairo.

RULES:
- Images are generated, never read from disk
- Tests that truly rasterize SVG must request the ``cairo`` fixture
- ``passthrough_composite`` records every SVG it receives
"""

import io
from typing import List
from unittest.mock import patch

import pytest
from PIL import Image


def make_image_bytes(
    width: int = 64,
    height: int = 48,
    fmt: str = "PNG",
    color=(90, 120, 150),
    exif=None,
) -> bytes:
    """Encode a solid-colour image of the given size."""
    img = Image.new("RGB", (width, height), color)
    buffer = io.BytesIO()
    if exif is not None:
        img.save(buffer, format=fmt, exif=exif)
    else:
        img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """A small 64x48 PNG."""
    return make_image_bytes()


@pytest.fixture
def jpeg_bytes():
    """A 120x80 JPEG."""
    return make_image_bytes(120, 80, fmt="JPEG")


@pytest.fixture
def cairo():
    """Skip unless CairoSVG and the native Cairo library can be loaded."""
    try:
        import cairosvg
    except (ImportError, OSError) as exc:
        pytest.skip("CairoSVG unavailable: {}".format(exc))
    return cairosvg


@pytest.fixture
def passthrough_composite():
    """Replace SVG compositing with a no-op and collect the SVGs passed in."""
    seen = []  # type: List[bytes]

    def _composite(image, svg):
        seen.append(svg)
        return image.convert("RGBA")

    with patch("photo_captioner.pipeline.composite_overlay", side_effect=_composite):
        yield seen
