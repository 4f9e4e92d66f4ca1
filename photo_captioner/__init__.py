"""Photo Captioner: burn a text caption into an uploaded image.

WHY: Adding a short caption to a photo should be one HTTP call: upload
the image with the text, get back a recompressed image with the caption
drawn near the bottom. This package is the service around the pure
caption_overlay library.

HOW: Four-stage pipeline: validate, probe (Pillow), compose (caption
layout + SVG overlay rasterized by CairoSVG), encode (Pillow). The same
pipeline backs the FastAPI endpoint, the local CLI, and tests.

RULES:
- Layout and markup live in caption_overlay; imaging lives in raster
- Nothing is persisted between requests
"""

__version__ = "0.1.0"
