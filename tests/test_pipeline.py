"""Tests for the request orchestrator and raster engine adapter.

WHY: The orchestrator owns the error taxonomy (missing input, unreadable
image, render failure) and option normalization. The raster adapter owns
orientation handling and encoding. Both must behave the same whether
called from the API or the CLI.

HOW: Option parsing and validation are tested directly. Probing uses
Pillow-generated images, including a JPEG with an EXIF orientation tag.
Rendering tests use the ``passthrough_composite`` fixture unless they
need real SVG rasterization, which requests the ``cairo`` fixture.

RULES:
- No test reads image files from disk
- Cairo-dependent tests are skipped when the native library is missing
"""

import io
from unittest.mock import patch

import pytest
from PIL import Image

from conftest import make_image_bytes
from photo_captioner.pipeline import (
    CaptionOptions,
    CaptionRequest,
    InvalidOptionError,
    MissingInputError,
    OutputFormat,
    RenderError,
    UnreadableImageError,
    render_caption,
    validate_request,
)
from photo_captioner.raster import (
    UnreadableImageError as RasterUnreadableError,
    composite_overlay,
    encode_image,
    open_oriented,
)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class TestCaptionOptions:
    """CaptionOptions.from_form() defaults and normalization."""

    def test_defaults_when_omitted(self):
        options = CaptionOptions.from_form()
        assert options.font_size == 22
        assert options.text_color == "#FFFFFF"
        assert options.margin == 16
        assert options.font_family == "DejaVu Sans, Arial, Helvetica, sans-serif"
        assert options.outline is True
        assert options.output == OutputFormat.webp
        assert options.quality == 92

    def test_parses_numeric_strings(self):
        options = CaptionOptions.from_form(font_size="30", margin="8.5", quality="75")
        assert options.font_size == 30
        assert options.margin == 8.5
        assert options.quality == 75

    def test_empty_numeric_string_uses_default(self):
        assert CaptionOptions.from_form(font_size="").font_size == 22

    def test_outline_only_true_for_true(self):
        assert CaptionOptions.from_form(outline="true").outline is True
        assert CaptionOptions.from_form(outline="TRUE").outline is True
        assert CaptionOptions.from_form(outline="false").outline is False
        assert CaptionOptions.from_form(outline="yes").outline is False

    @pytest.mark.parametrize("raw,expected", [
        ("webp", OutputFormat.webp),
        ("JPEG", OutputFormat.jpeg),
        ("jpg", OutputFormat.jpeg),
        ("png", OutputFormat.png),
    ])
    def test_output_format_parsing(self, raw, expected):
        assert CaptionOptions.from_form(output=raw).output == expected

    @pytest.mark.parametrize("kwargs", [
        {"font_size": "abc"},
        {"font_size": "0"},
        {"font_size": "-4"},
        {"font_size": "nan"},
        {"font_size": "1e-310"},
        {"font_size": "0.5"},
        {"font_size": "5000"},
        {"margin": "-1"},
        {"quality": "101"},
        {"quality": "-5"},
        {"output": "gif"},
        {"text_color": "   "},
        {"font_family": ""},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(InvalidOptionError):
            CaptionOptions.from_form(**kwargs)

    def test_invalid_option_is_value_error(self):
        with pytest.raises(ValueError):
            CaptionOptions.from_form(output="bmp")

    def test_font_size_bounds_inclusive(self):
        assert CaptionOptions.from_form(font_size="1").font_size == 1
        assert CaptionOptions.from_form(font_size="2000").font_size == 2000

    def test_default_output_accepts_alias(self):
        with patch("photo_captioner.config.DEFAULT_OUTPUT", "jpg"):
            assert CaptionOptions().output == OutputFormat.jpeg
            assert CaptionOptions.from_form().output == OutputFormat.jpeg

    def test_to_style_carries_styling_fields(self):
        style = CaptionOptions.from_form(font_size="40", outline="false").to_style()
        assert style.font_size == 40
        assert style.outline is False


class TestOutputFormat:

    def test_media_types_and_extensions(self):
        assert OutputFormat.webp.media_type == "image/webp"
        assert OutputFormat.jpeg.media_type == "image/jpeg"
        assert OutputFormat.png.media_type == "image/png"
        assert OutputFormat.jpeg.extension == "jpg"
        assert OutputFormat.webp.extension == "webp"


# ---------------------------------------------------------------------------
# Validation and probing
# ---------------------------------------------------------------------------


class TestValidateRequest:

    def test_returns_trimmed_caption(self):
        assert validate_request(b"data", "  hello  ") == "hello"

    def test_missing_file(self):
        with pytest.raises(MissingInputError, match="file is required"):
            validate_request(None, "caption")

    def test_empty_file(self):
        with pytest.raises(MissingInputError, match="file is required"):
            validate_request(b"", "caption")

    @pytest.mark.parametrize("caption", [None, "", "   ", "\n\t "])
    def test_blank_caption(self, caption):
        with pytest.raises(MissingInputError, match="caption is required"):
            validate_request(b"data", caption)

    def test_errors_are_client_errors(self):
        with pytest.raises(MissingInputError) as exc_info:
            validate_request(None, "x")
        assert exc_info.value.status_code == 400


class TestOpenOriented:
    """raster.open_oriented() probing and orientation."""

    def test_probes_dimensions(self, png_bytes):
        _, dims = open_oriented(png_bytes)
        assert (dims.width, dims.height) == (64, 48)

    def test_applies_exif_orientation(self):
        exif = Image.Exif()
        exif[0x0112] = 6  # rotate 90 degrees clockwise on display
        data = make_image_bytes(120, 80, fmt="JPEG", exif=exif)
        image, dims = open_oriented(data)
        assert (dims.width, dims.height) == (80, 120)
        assert image.size == (80, 120)

    def test_garbage_bytes_unreadable(self):
        with pytest.raises(RasterUnreadableError):
            open_oriented(b"definitely not an image")

    def test_truncated_image_unreadable(self, jpeg_bytes):
        with pytest.raises(RasterUnreadableError):
            open_oriented(jpeg_bytes[:40])


# ---------------------------------------------------------------------------
# Encoding and compositing
# ---------------------------------------------------------------------------


class TestEncodeImage:

    @pytest.mark.parametrize("fmt,pil_format", [
        ("webp", "WEBP"),
        ("jpeg", "JPEG"),
        ("png", "PNG"),
    ])
    def test_encodes_requested_format(self, fmt, pil_format):
        image = Image.new("RGBA", (32, 24), (10, 20, 30, 255))
        data = encode_image(image, fmt, 80)
        with Image.open(io.BytesIO(data)) as decoded:
            assert decoded.format == pil_format
            assert decoded.size == (32, 24)

    def test_png_is_lossless(self):
        image = Image.new("RGBA", (8, 8), (1, 2, 3, 255))
        data = encode_image(image, "png", 1)
        with Image.open(io.BytesIO(data)) as decoded:
            assert decoded.convert("RGBA").getpixel((4, 4)) == (1, 2, 3, 255)

    def test_unknown_format_raises(self):
        with pytest.raises(ValueError):
            encode_image(Image.new("RGB", (4, 4)), "gif", 90)


class TestCompositeOverlay:

    def test_overlay_pixels_drawn(self, cairo):
        image = Image.new("RGB", (40, 30), (0, 0, 255))
        svg = (
            b'<svg width="40" height="30" viewBox="0 0 40 30" '
            b'xmlns="http://www.w3.org/2000/svg">'
            b'<rect x="0" y="0" width="20" height="30" fill="#FF0000"/></svg>'
        )
        result = composite_overlay(image, svg)
        assert result.size == (40, 30)
        assert result.getpixel((5, 15))[:3] == (255, 0, 0)
        assert result.getpixel((35, 15))[:3] == (0, 0, 255)


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------


class TestRenderCaption:
    """render_caption() stages and error mapping."""

    def test_missing_file_rejected_before_probe(self):
        with patch("photo_captioner.pipeline.open_oriented") as probe:
            with pytest.raises(MissingInputError):
                render_caption(CaptionRequest(image_bytes=None, caption="A"))
            probe.assert_not_called()

    def test_unreadable_image_rejected_before_overlay(self):
        with patch("photo_captioner.pipeline.composite_overlay") as composite:
            with pytest.raises(UnreadableImageError) as exc_info:
                render_caption(CaptionRequest(image_bytes=b"garbage", caption="A"))
            composite.assert_not_called()
        assert exc_info.value.status_code == 400

    def test_overlay_built_from_trimmed_caption(self, passthrough_composite):
        data = make_image_bytes(400, 300)
        rendered = render_caption(CaptionRequest(image_bytes=data, caption="  Hi <there>  "))
        assert rendered.layout.lines == ["Hi <there>"]
        svg = passthrough_composite[0].decode("utf-8")
        assert 'width="400" height="300"' in svg
        assert "Hi &lt;there&gt;" in svg

    def test_default_output_is_webp(self, png_bytes, passthrough_composite):
        rendered = render_caption(CaptionRequest(image_bytes=png_bytes, caption="A"))
        assert rendered.media_type == "image/webp"
        assert rendered.filename == "captioned.webp"
        with Image.open(io.BytesIO(rendered.content)) as decoded:
            assert decoded.format == "WEBP"

    def test_jpeg_output_uses_jpg_extension(self, png_bytes, passthrough_composite):
        options = CaptionOptions.from_form(output="jpeg", quality="70")
        rendered = render_caption(CaptionRequest(png_bytes, "A", options))
        assert rendered.media_type == "image/jpeg"
        assert rendered.filename == "captioned.jpg"

    def test_overlay_sized_to_oriented_image(self, passthrough_composite):
        exif = Image.Exif()
        exif[0x0112] = 8
        data = make_image_bytes(100, 40, fmt="JPEG", exif=exif)
        render_caption(CaptionRequest(image_bytes=data, caption="A"))
        assert b'width="40" height="100"' in passthrough_composite[0]

    def test_render_failure_wrapped(self, png_bytes):
        with patch(
            "photo_captioner.pipeline.composite_overlay",
            side_effect=RuntimeError("cairo exploded"),
        ):
            with pytest.raises(RenderError) as exc_info:
                render_caption(CaptionRequest(image_bytes=png_bytes, caption="A"))
        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_end_to_end_with_cairo(self, cairo, jpeg_bytes):
        options = CaptionOptions.from_form(output="png")
        rendered = render_caption(CaptionRequest(jpeg_bytes, "Hello world", options))
        with Image.open(io.BytesIO(rendered.content)) as decoded:
            assert decoded.format == "PNG"
            assert decoded.size == (120, 80)
