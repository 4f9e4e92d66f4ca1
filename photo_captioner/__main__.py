"""Package entry point for ``python -m photo_captioner``.

WHY: Users caption a local image as ``python -m photo_captioner photo.jpg
"Caption"``, or start the HTTP API with ``python -m photo_captioner --serve``.

HOW: Checks sys.argv for the ``--serve`` flag. If present, starts the API
with uvicorn. Otherwise, delegates to the CLI's main() function.
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from photo_captioner.server.app import run_api
        run_api()
    else:
        from photo_captioner.cli import main
        main()
