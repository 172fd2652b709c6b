"""API route handlers."""

from src.api.openapi.routes import health, streaming, videos

__all__ = [
    "health",
    "streaming",
    "videos",
]
