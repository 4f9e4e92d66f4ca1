"""Async HTTP client for the photo captioner API.

WHY: Scripts and live-preview front ends need to post an image plus a
caption and get bytes back, and a preview that re-renders as the user
types must not let a slow, stale response overwrite a newer one. This
module wraps the HTTP details and the "latest request wins" behaviour.

HOW: CaptionClient wraps httpx.AsyncClient as an async context manager
and posts multipart forms to /api/caption. PreviewSession sits on top: each
submit() cancels the previous in-flight task (the task is the
cancellation token) and waits PREVIEW_DEBOUNCE_S before sending, so a
burst of edits produces one request for the final caption.

RULES:
- Always use the async context manager (async with CaptionClient() as c:)
- Form field names are the API's camelCase names (fontSize, textColor, ...)
- Non-200 responses raise CaptionAPIError with the body's "error" message
- PreviewSession never delivers a result for a superseded submission
- Blank captions are not submitted by PreviewSession
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

from photo_captioner.config import API_URL, PREVIEW_DEBOUNCE_S

logger = logging.getLogger(__name__)

# Python keyword names -> API form field names
_FORM_FIELDS = {
    "font_size": "fontSize",
    "text_color": "textColor",
    "margin": "margin",
    "font_family": "fontFamily",
    "outline": "outline",
    "output": "output",
    "quality": "quality",
}


class CaptionAPIError(Exception):
    """Raised when the caption API returns an error response.

    RULES:
    - Always include status_code and message
    - message is the response's "error" field, or the body text
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Caption API error {status_code}: {message}")


@dataclass
class CaptionResult:
    """A captioned image returned by the API."""

    content: bytes
    media_type: str
    filename: str | None = None


def _form_data(caption: str, options: dict) -> dict[str, str]:
    """Translate keyword options into API form fields (all strings)."""
    data = {"caption": caption}
    for key, value in options.items():
        if value is None:
            continue
        if key not in _FORM_FIELDS:
            raise TypeError(f"Unknown caption option '{key}'")
        if isinstance(value, bool):
            value = "true" if value else "false"
        data[_FORM_FIELDS[key]] = str(getattr(value, "value", value))
    return data


def _filename_from_disposition(header: str | None) -> str | None:
    """Extract filename="..." from a Content-Disposition header."""
    if not header or "filename=" not in header:
        return None
    return header.split("filename=", 1)[1].strip().strip('"')


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return resp.text


class CaptionClient:
    """Async client for POST /api/caption.

    WHY: Gives callers a typed call (bytes in, CaptionResult out) instead
    of hand-built multipart requests, and a single error type to catch.

    HOW: Wraps httpx.AsyncClient. Use as an async context manager so the
    connection pool is closed. An existing httpx.AsyncClient (e.g. one
    built on a mock transport) can be injected for tests.

    RULES:
    - Use as: async with CaptionClient() as client: ...
    - base_url defaults to CAPTION_API_URL from config
    """

    def __init__(
        self,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = (base_url or API_URL).rstrip("/")
        self._client: httpx.AsyncClient | None = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> CaptionClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(120.0, connect=10.0),
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "CaptionClient must be used as an async context manager: "
                "async with CaptionClient() as client: ..."
            )
        return self._client

    async def caption_image(
        self,
        image: bytes,
        caption: str,
        filename: str = "image",
        **options,
    ) -> CaptionResult:
        """Upload an image with a caption and return the captioned image.

        RULES:
        - options are font_size, text_color, margin, font_family, outline,
          output, quality; None values are omitted (server defaults apply)
        - Raises CaptionAPIError on non-200 responses
        - Raises TypeError for unknown option names

        Args:
            image: Source image bytes.
            caption: Caption text.
            filename: Filename sent with the upload.
            **options: Optional caption options.

        Returns:
            CaptionResult with the encoded bytes and media type.
        """
        client = self._ensure_client()
        data = _form_data(caption, options)

        resp = await client.post(
            "/api/caption",
            data=data,
            files={"file": (filename, image, "application/octet-stream")},
        )

        if resp.status_code != 200:
            raise CaptionAPIError(resp.status_code, _error_message(resp))

        return CaptionResult(
            content=resp.content,
            media_type=resp.headers.get("content-type", "application/octet-stream"),
            filename=_filename_from_disposition(resp.headers.get("content-disposition")),
        )


class PreviewSession:
    """Debounced live preview where only the latest submission counts.

    WHY: A preview that re-renders on every keystroke would flood the
    server and could show an older caption if responses arrive out of
    order. Debouncing plus cancel-previous keeps exactly one request in
    flight, for the newest caption.

    HOW: submit() cancels the previous task and schedules a new one that
    sleeps for the debounce period and then calls the client. Cancelling
    the task abandons the HTTP request; no partial result is delivered.

    RULES:
    - on_result is called only for the latest, non-cancelled submission
    - Errors other than cancellation go to on_error (or are logged),
      including exceptions raised by on_result
    - Blank captions or empty images are ignored (returns None)
    - close() cancels anything still pending
    """

    def __init__(
        self,
        client: CaptionClient,
        on_result: Callable[[CaptionResult], Awaitable[None] | None],
        on_error: Callable[[Exception], None] | None = None,
        debounce_s: float = PREVIEW_DEBOUNCE_S,
    ) -> None:
        self._client = client
        self._on_result = on_result
        self._on_error = on_error
        self._debounce_s = debounce_s
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(self, image: bytes, caption: str, **options) -> asyncio.Task | None:
        """Schedule a preview render, superseding any earlier submission."""
        self.cancel()
        if not image or not caption.strip():
            return None
        self._task = asyncio.ensure_future(self._run(image, caption, options))
        return self._task

    def cancel(self) -> None:
        """Abort the pending or in-flight submission, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, image: bytes, caption: str, options: dict) -> None:
        await asyncio.sleep(self._debounce_s)
        try:
            result = await self._client.caption_image(image, caption, **options)
        except (CaptionAPIError, httpx.HTTPError) as exc:
            if self._on_error is not None:
                self._on_error(exc)
            else:
                logger.warning("Preview render failed: %s", exc)
            return

        try:
            outcome = self._on_result(result)
            if asyncio.iscoroutine(outcome):
                await outcome
        except Exception as exc:
            if self._on_error is not None:
                self._on_error(exc)
            else:
                logger.exception("Preview result callback failed")

    async def close(self) -> None:
        """Cancel pending work and wait for the task to unwind."""
        task = self._task
        self.cancel()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
