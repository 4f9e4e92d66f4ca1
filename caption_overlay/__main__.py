"""Entry point for ``python -m caption_overlay``."""

from .cli import main

if __name__ == "__main__":
    main()
