"""
FAISS Index - Vector similarity search over chunk rows.

Features:
- Async-compatible operations
- Stable external ids (SQLite row ids) via IndexIDMap2
- Cosine similarity through normalized inner product
- Removal of replaced rows
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

import faiss
import numpy as np

logger = logging.getLogger(__name__)

__all__ = ["FAISSIndex"]


class FAISSIndex:
    """
    Exact FAISS index keyed by row id.

    Example:
        >>> index = FAISSIndex(dimension=768)
        >>> await index.add([1, 2], embeddings)
        >>> hits = await index.search(query_embedding, k=50)
        >>> hits[0]
        (2, 0.83)
    """

    def __init__(self, dimension: int) -> None:
        """
        Initialize FAISS index.

        Args:
            dimension: Vector dimension reported by the embedding model
        """
        self.dimension = dimension
        self._index = faiss.IndexIDMap2(faiss.IndexFlatIP(dimension))

    def _prepare(self, vectors: np.ndarray) -> np.ndarray:
        if vectors.ndim == 1:
            vectors = vectors.reshape(1, -1)
        if vectors.shape[1] != self.dimension:
            raise ValueError(
                f"Expected vectors of dimension {self.dimension}, got {vectors.shape[1]}"
            )

        vectors = np.ascontiguousarray(vectors.astype("float32"))
        # Normalize for inner product (cosine similarity)
        faiss.normalize_L2(vectors)
        return vectors

    async def add(self, ids: Sequence[int] | np.ndarray, vectors: np.ndarray) -> None:
        """
        Add vectors under the given ids.

        Args:
            ids: Row ids (same length as vectors)
            vectors: numpy array of shape (n, dimension)
        """
        id_array = np.asarray(ids, dtype="int64")
        if id_array.size == 0:
            return

        prepared = self._prepare(vectors)
        await asyncio.to_thread(self._index.add_with_ids, prepared, id_array)
        logger.debug("Added %d vectors to index", len(id_array))

    async def remove(self, ids: Sequence[int]) -> int:
        """Remove vectors by id; returns how many were present."""
        if not ids:
            return 0
        removed = await asyncio.to_thread(
            self._index.remove_ids, np.asarray(ids, dtype="int64")
        )
        return int(removed)

    async def search(self, query_vector: np.ndarray, k: int = 10) -> list[tuple[int, float]]:
        """
        Search for similar vectors.

        Args:
            query_vector: Query vector of shape (dimension,) or (1, dimension)
            k: Number of results

        Returns:
            ``(id, cosine similarity)`` pairs, best first
        """
        if self._index.ntotal == 0 or k < 1:
            return []

        query = self._prepare(query_vector)
        scores, ids = await asyncio.to_thread(
            self._index.search, query, min(k, self._index.ntotal)
        )

        return [
            (int(idx), float(score))
            for score, idx in zip(scores[0], ids[0])
            if idx >= 0
        ]

    @property
    def size(self) -> int:
        """Get number of vectors in index."""
        return self._index.ntotal
