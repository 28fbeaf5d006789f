"""
Indexing Contracts - Interfaces for indexing domain.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

import numpy as np

ProgressCallback = Callable[[int, int, str], None]


@runtime_checkable
class ChunkTableStore(Protocol):
    """Contract for the storage that receives indexed chunks."""

    async def table_exists(self, table: str) -> bool:
        """Check whether ``table`` has been created."""
        ...

    async def create_table(self, table: str, dimension: int) -> None:
        """Create ``table`` for vectors of ``dimension``."""
        ...

    async def upsert(
        self,
        table: str,
        path: str,
        chunks: Sequence[str],
        vectors: np.ndarray,
    ) -> int:
        """Replace all rows of ``path`` with the given chunks."""
        ...

    async def remove_path(self, table: str, path: str) -> int:
        """Delete every row of ``path``; no error if ``table`` does not exist."""
        ...

    async def drop_table(self, table: str) -> None:
        """Drop ``table``; no error if it does not exist."""
        ...


@runtime_checkable
class PassageEmbedder(Protocol):
    """Contract for turning chunks into vectors."""

    async def embed_passages(self, texts: Sequence[str]) -> np.ndarray:
        """Encode indexed content."""
        ...

    async def detect_dimension(self) -> int:
        """Vector length produced by the model."""
        ...
