"""Command-line interface for captioning local image files.

WHY: Captioning a file on disk should not require running the HTTP
service. The CLI feeds a local image through the same orchestrator the
API uses, so results are identical.

HOW: argparse collects the input path, caption and the same options the
HTTP form accepts (as raw strings, normalized by CaptionOptions.from_form).
render_caption() runs in-process and the result is written next to the
source (or to --output). Status messages go to stderr.

RULES:
- Positional arguments: input image path, caption text
- Default output name: {stem}-captioned.{ext}, numeric suffix on conflict
  (photo-captioned-2.webp)
- Exit codes: 0 = success, 1 = error
- Python 3.9 compatible: no match/case, no X | Y unions
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from photo_captioner import config
from photo_captioner.pipeline import (
    CaptionError,
    CaptionOptions,
    CaptionRequest,
    OutputFormat,
    render_caption,
)


def _status(msg: str) -> None:
    """Print a status message to stderr (stdout stays clean for piping)."""
    print(msg, file=sys.stderr, flush=True)


def _resolve_output_path(input_path: Path, output: OutputFormat) -> Path:
    """Pick {stem}-captioned.{ext} next to the input, avoiding overwrites.

    RULES:
    - First attempt: {stem}-captioned.{ext}
    - Conflict: {stem}-captioned-2.{ext}, -3, ... until free
    """
    stem = "{}-{}".format(input_path.stem, config.OUTPUT_BASENAME)
    candidate = input_path.parent / "{}.{}".format(stem, output.extension)
    counter = 2
    while candidate.exists():
        candidate = input_path.parent / "{}-{}.{}".format(stem, counter, output.extension)
        counter += 1
    return candidate


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Positional: input_file, caption
    - Optional flags mirror the HTTP form fields; omitted flags use the
      configured defaults
    """
    parser = argparse.ArgumentParser(
        prog="photo_captioner",
        description="Draw a caption near the bottom of an image and save it "
                    "as WebP, JPEG or PNG.",
    )
    parser.add_argument("input_file", help="Path to the source image.")
    parser.add_argument("caption", help="Caption text.")
    parser.add_argument(
        "-o", "--output-file",
        default=None,
        help="Where to write the result (default: {stem}-captioned.{ext} next to the input).",
    )
    parser.add_argument(
        "--format",
        dest="output",
        default=None,
        help="Output format: webp, jpeg or png (default: {}).".format(config.DEFAULT_OUTPUT),
    )
    parser.add_argument("--font-size", default=None, help="Font size in px (default: 22).")
    parser.add_argument("--color", dest="text_color", default=None, help="Text colour (default: #FFFFFF).")
    parser.add_argument("--margin", default=None, help="Left/bottom margin in px (default: 16).")
    parser.add_argument("--font-family", default=None, help="CSS font-family list.")
    parser.add_argument(
        "--outline",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Draw a dark outline beneath the text (default: on).",
    )
    parser.add_argument("--quality", default=None, help="Quality 0-100 for webp/jpeg (default: 92).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        print("Error: File not found: {}".format(input_path), file=sys.stderr)
        sys.exit(1)

    outline = None  # type: Optional[str]
    if args.outline is not None:
        outline = "true" if args.outline else "false"

    try:
        options = CaptionOptions.from_form(
            font_size=args.font_size,
            text_color=args.text_color,
            margin=args.margin,
            font_family=args.font_family,
            outline=outline,
            output=args.output,
            quality=args.quality,
        )
        _status("Captioning {}...".format(input_path.name))
        rendered = render_caption(CaptionRequest(
            image_bytes=input_path.read_bytes(),
            caption=args.caption,
            options=options,
        ))
    except CaptionError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    if args.output_file:
        output_path = Path(args.output_file)
    else:
        output_path = _resolve_output_path(input_path, rendered.output)

    output_path.write_bytes(rendered.content)
    _status("  {} caption line(s)".format(len(rendered.layout.lines)))
    _status("Saved: {}".format(output_path))


if __name__ == "__main__":
    main()
