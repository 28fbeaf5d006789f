"""
SQLite Adapter - Chunk rows with FTS5 search.
"""

from .repository import ChunkRepository

__all__ = ["ChunkRepository"]
