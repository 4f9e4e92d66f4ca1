"""CLI wrapper for the caption overlay library.

WHY: Checking how a caption wraps, or handing an overlay to another
compositing tool, should not require starting the HTTP service. This
command prints the SVG overlay (or just the wrapped lines) for a caption
and an image size.

HOW: argparse collects the caption, image size and style flags, builds a
CaptionStyle and delegates to layout_caption()/render_svg().

RULES:
- Usage:
    python -m caption_overlay "Hello world" --width 1000 --height 800
    python -m caption_overlay "Hello world" -W 1000 -H 800 --lines
    echo "Hello world" | python -m caption_overlay - -W 1000 -H 800 -o overlay.svg
- Exit codes: 0 = success, 1 = error.
- Status messages go to stderr; SVG/lines go to stdout unless -o is given.
"""

import argparse
import sys
from typing import List, Optional

from .models import CaptionStyle, DEFAULT_FONT_FAMILY, ImageDimensions
from .overlay import layout_caption, render_svg


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the overlay CLI."""
    parser = argparse.ArgumentParser(
        prog="caption_overlay",
        description="Wrap a caption and print its SVG overlay for an image size.",
    )
    parser.add_argument("caption", help="Caption text, or '-' to read it from stdin.")
    parser.add_argument("-W", "--width", type=int, required=True, help="Image width in px.")
    parser.add_argument("-H", "--height", type=int, required=True, help="Image height in px.")
    parser.add_argument("--font-size", type=float, default=22, help="Font size in px (default: %(default)s).")
    parser.add_argument("--color", default="#FFFFFF", help="Text colour (default: %(default)s).")
    parser.add_argument("--margin", type=float, default=16, help="Left/bottom margin in px (default: %(default)s).")
    parser.add_argument("--font-family", default=DEFAULT_FONT_FAMILY, help="CSS font-family list.")
    parser.add_argument(
        "--outline",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Draw a dark outline beneath the text (default: %(default)s).",
    )
    parser.add_argument("--lines", action="store_true", help="Print wrapped lines instead of SVG.")
    parser.add_argument("-o", "--output", default=None, help="Write output to this file.")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Run the overlay CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).
    """
    args = build_parser().parse_args(argv)

    caption = sys.stdin.read() if args.caption == "-" else args.caption
    if not caption.strip():
        print("Error: Caption is empty", file=sys.stderr)
        sys.exit(1)

    if args.font_size <= 0:
        print("Error: --font-size must be positive", file=sys.stderr)
        sys.exit(1)

    try:
        dimensions = ImageDimensions(args.width, args.height)
    except ValueError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    style = CaptionStyle(
        font_size=args.font_size,
        text_color=args.color,
        margin=args.margin,
        font_family=args.font_family,
        outline=args.outline,
    )
    layout = layout_caption(dimensions, caption.strip(), style)

    if args.lines:
        content = "\n".join(layout.lines)
    else:
        content = render_svg(dimensions, layout, style)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(content)
        print(
            "Wrote {} line(s) ({} chars max per line) to {}".format(
                len(layout.lines), layout.max_chars, args.output
            ),
            file=sys.stderr,
        )
    else:
        print(content)


if __name__ == "__main__":
    main()
