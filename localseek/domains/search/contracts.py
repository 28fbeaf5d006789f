"""
Search Contracts - Interfaces for search domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

from .models import SearchResult


@runtime_checkable
class SearchBackend(Protocol):
    """Contract for the store answering vector and lexical queries."""

    async def vector_search(
        self,
        table: str,
        vector: np.ndarray,
        limit: int,
    ) -> list[SearchResult]:
        """Nearest chunks by cosine similarity, one per path."""
        ...

    async def text_search(
        self,
        table: str,
        query: str,
        limit: int,
    ) -> list[SearchResult]:
        """Best full-text matches, one per path."""
        ...


@runtime_checkable
class QueryEmbedder(Protocol):
    """Contract for query-side embedding."""

    async def embed_query(self, query: str) -> np.ndarray:
        """Encode a search query."""
        ...
