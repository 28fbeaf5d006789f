"""
API Routes.
"""

from . import containers, health, indexing, search

__all__ = ["health", "containers", "search", "indexing"]
