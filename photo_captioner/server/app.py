"""FastAPI application exposing the caption endpoint and OpenAPI docs.

WHY: Browsers and scripts caption images by POSTing a multipart form with
the image and caption text. FastAPI parses the form, documents every
field in /docs, and lets the CPU-bound pipeline run off the event loop.

HOW: POST /api/caption reads the form fields as optional strings,
normalizes them with CaptionOptions.from_form(), and runs render_caption()
in a worker thread. The encoded image is returned inline with no-store
caching. CaptionError subclasses are turned into {"error": ...} bodies by a
single exception handler.

RULES:
- Form field names match the browser client: file, caption, fontSize,
  textColor, margin, fontFamily, outline, output, quality
- 400 {"error"} for missing file, blank caption, unreadable image, or an
  invalid option; 500 {"error"} when compositing/encoding fails
- Content-Disposition: inline; filename="captioned.<ext>" (jpeg -> .jpg)
- Cache-Control: no-store on every image response
- Uploads are held in memory only for the duration of the request
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated, Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from photo_captioner import __version__, config
from photo_captioner.pipeline import (
    CaptionError,
    CaptionOptions,
    CaptionRequest,
    render_caption,
    validate_request,
)
from photo_captioner.server.models import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Photo Captioner API",
    description=(
        "Upload an image with a caption and receive the image back with the "
        "caption drawn near the bottom-left edge, recompressed as WebP, JPEG "
        "or PNG."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.exception_handler(CaptionError)
async def caption_error_handler(request: Request, exc: CaptionError) -> JSONResponse:
    """Render any CaptionError as {"error": message} with its status code."""
    if exc.status_code < 500:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


# ---------------------------------------------------------------------------
# Endpoints: Caption
# ---------------------------------------------------------------------------


@app.post(
    "/api/caption",
    tags=["caption"],
    summary="Caption an image",
    description=(
        "Upload an image and a caption. The caption is wrapped to 70% of the "
        "image width, drawn left-aligned and anchored to the bottom margin, "
        "and the result is returned in the requested format."
    ),
    response_class=Response,
    responses={
        200: {
            "content": {
                "image/webp": {},
                "image/jpeg": {},
                "image/png": {},
            },
            "description": "The captioned image.",
        },
        400: {"model": ErrorResponse, "description": "Missing input, invalid option, or unreadable image"},
        500: {"model": ErrorResponse, "description": "Compositing or encoding failed"},
    },
)
async def create_caption(
    file: Annotated[
        Optional[UploadFile],
        File(description="Source image, any format Pillow can decode."),
    ] = None,
    caption: Annotated[
        Optional[str],
        Form(description="Caption text. Rejected if blank after trimming."),
    ] = None,
    font_size: Annotated[
        Optional[str],
        Form(alias="fontSize", description="Font size in px (default 22)."),
    ] = None,
    text_color: Annotated[
        Optional[str],
        Form(alias="textColor", description="Text colour, e.g. '#FFFFFF' (default)."),
    ] = None,
    margin: Annotated[
        Optional[str],
        Form(description="Left/bottom margin in px (default 16)."),
    ] = None,
    font_family: Annotated[
        Optional[str],
        Form(
            alias="fontFamily",
            description="CSS font-family list (default 'DejaVu Sans, Arial, Helvetica, sans-serif').",
        ),
    ] = None,
    outline: Annotated[
        Optional[str],
        Form(description="'true' or 'false': dark outline beneath the text (default 'true')."),
    ] = None,
    output: Annotated[
        Optional[str],
        Form(description="Output format: webp (default), jpeg or png."),
    ] = None,
    quality: Annotated[
        Optional[str],
        Form(description="Encoder quality 0-100 for webp and jpeg (default 92)."),
    ] = None,
) -> Response:
    image_bytes = await file.read() if file is not None else None
    validate_request(image_bytes, caption)

    options = CaptionOptions.from_form(
        font_size=font_size,
        text_color=text_color,
        margin=margin,
        font_family=font_family,
        outline=outline,
        output=output,
        quality=quality,
    )
    request = CaptionRequest(image_bytes=image_bytes, caption=caption, options=options)

    rendered = await asyncio.to_thread(render_caption, request)

    return Response(
        content=rendered.content,
        media_type=rendered.media_type,
        headers={
            "Content-Disposition": 'inline; filename="{}"'.format(rendered.filename),
            "Cache-Control": "no-store",
        },
    )


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the photo-captioner-api console script."""
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger.info("Starting Photo Captioner API on %s:%d", config.API_HOST, config.API_PORT)
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
