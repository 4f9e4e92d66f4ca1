"""HTTP API for the photo captioner (FastAPI)."""
