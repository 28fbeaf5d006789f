"""
Chunk Store Adapter - Table facade over SQLite and FAISS.
"""

from .store import ChunkStore, match_expression

__all__ = ["ChunkStore", "match_expression"]
