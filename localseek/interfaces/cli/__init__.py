"""
CLI Interface - Command-line tools for LocalSeek.

Provides commands for:
- Container management
- Folder indexing with live progress
- Search queries
- Running the API server
"""

from .main import app, main

__all__ = ["app", "main"]
