"""API layer - REST endpoints for upload, management and delivery."""

from src.api.main import app, create_app

__all__ = [
    "app",
    "create_app",
]
