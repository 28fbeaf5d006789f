"""
API Interface - FastAPI REST API over the workspace operations.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
