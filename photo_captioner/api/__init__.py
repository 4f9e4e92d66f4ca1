"""Async HTTP client for the photo captioner API.

Public API:
    CaptionClient  : async context manager posting images to /api/caption
    PreviewSession : debounced, cancel-previous wrapper for live previews
    CaptionAPIError: raised for non-200 responses
"""

from photo_captioner.api.client import CaptionAPIError, CaptionClient, PreviewSession

__all__ = ["CaptionAPIError", "CaptionClient", "PreviewSession"]
