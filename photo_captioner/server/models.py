"""Pydantic response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for error bodies and the
health check so they appear in the OpenAPI docs. The captioned image
itself is a raw binary response and has no model.

HOW: Each JSON response shape has its own model with Field descriptions.
OutputFormat is re-exported from the pipeline so the API and the
orchestrator share one definition.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Error bodies use the key "error" (not FastAPI's default "detail")
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from photo_captioner.pipeline import OutputFormat

__all__ = ["ErrorResponse", "HealthResponse", "OutputFormat"]


class ErrorResponse(BaseModel):
    """Standard error response body.

    WHY: Clients (including the preview client) read a single "error"
    field to show a message, for every failure the API reports.
    """

    error: str = Field(description="Human-readable error description.")

    model_config = {"json_schema_extra": {
        "examples": [
            {"error": "caption is required"},
        ]
    }}


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
