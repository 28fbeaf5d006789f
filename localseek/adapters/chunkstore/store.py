"""
Chunk Store - Per-container tables with vector and full-text search.

Features:
- SQLite rows as the only persisted state
- FAISS index per table, rebuilt lazily from stored vectors
- One result per path for both search channels
- Storage failures surfaced as StorageError
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

import aiosqlite
import numpy as np

from localseek.adapters.faiss import FAISSIndex
from localseek.adapters.sqlite import ChunkRepository
from localseek.config.errors import StorageError
from localseek.domains.search.models import SearchResult

logger = logging.getLogger(__name__)

__all__ = ["ChunkStore", "match_expression"]

_TOKEN_RE = re.compile(r"\w+")


def match_expression(query: str) -> str:
    """
    Turn free text into an FTS5 expression.

    Every word becomes a quoted phrase so operator characters in user input
    can never produce a syntax error. Returns ``""`` when nothing is left.
    """
    return " ".join(f'"{token}"' for token in _TOKEN_RE.findall(query))


@contextmanager
def _storage_errors(action: str, table: str) -> Iterator[None]:
    try:
        yield
    except aiosqlite.Error as e:
        raise StorageError(f"Failed to {action}: {e}", {"table": table}) from e


class ChunkStore:
    """
    Storage collaborator used by indexing and search.

    Example:
        >>> store = ChunkStore("data/localseek.db")
        >>> await store.initialize()
        >>> await store.create_table("c_Default", 768)
        >>> await store.upsert("c_Default", "/docs/a.md", chunks, vectors)
        >>> hits = await store.vector_search("c_Default", query_vector, limit=50)
    """

    def __init__(self, db_path: str | Path, oversample: int = 3) -> None:
        """
        Initialize store.

        Args:
            db_path: Path to SQLite database file
            oversample: Vector candidates fetched per requested path
        """
        self._repo = ChunkRepository(db_path)
        self._oversample = max(1, oversample)
        self._indexes: dict[str, FAISSIndex] = {}
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        with _storage_errors("initialize database", ""):
            await self._repo.initialize()

    async def close(self) -> None:
        async with self._lock:
            self._indexes.clear()
        await self._repo.close()

    async def table_exists(self, table: str) -> bool:
        with _storage_errors("inspect table", table):
            return await self._repo.table_dimension(table) is not None

    async def create_table(self, table: str, dimension: int) -> None:
        """Create ``table`` for vectors of ``dimension``."""
        async with self._lock:
            with _storage_errors("create table", table):
                await self._repo.create_table(table, dimension)
            self._indexes.pop(table, None)

    async def upsert(
        self,
        table: str,
        path: str,
        chunks: Sequence[str],
        vectors: np.ndarray,
    ) -> int:
        """
        Replace all rows of ``path`` in ``table``.

        Returns:
            Number of rows written

        Raises:
            StorageError: Missing table, shape mismatch or database failure
        """
        matrix = np.asarray(vectors, dtype="float32")
        if matrix.ndim != 2 or matrix.shape[0] != len(chunks):
            raise StorageError(
                f"Got {len(chunks)} chunks but vectors of shape {matrix.shape}",
                {"table": table, "path": path},
            )

        async with self._lock:
            with _storage_errors("upsert rows", table):
                dimension = await self._repo.table_dimension(table)
                if dimension is None:
                    raise StorageError(f"Table does not exist: {table}", {"table": table})
                if matrix.shape[1] != dimension:
                    raise StorageError(
                        f"Vector dimension {matrix.shape[1]} does not match table dimension {dimension}",
                        {"table": table, "path": path},
                    )
                removed, added = await self._repo.replace_path(table, path, chunks, matrix)

            index = self._indexes.get(table)
            if index is not None:
                await index.remove(removed)
                await index.add(added, matrix)

        logger.debug("Upserted %d rows for %s into %s", len(added), path, table)
        return len(added)

    async def remove_path(self, table: str, path: str) -> int:
        """
        Delete every row of ``path`` in ``table``.

        Returns:
            Number of rows removed (0 when the table does not exist)
        """
        async with self._lock:
            with _storage_errors("remove rows", table):
                if await self._repo.table_dimension(table) is None:
                    return 0
                removed, _ = await self._repo.replace_path(
                    table, path, [], np.empty((0, 0), dtype="float32")
                )

            index = self._indexes.get(table)
            if index is not None and removed:
                await index.remove(removed)

        logger.debug("Removed %d rows for %s from %s", len(removed), path, table)
        return len(removed)

    async def vector_search(
        self,
        table: str,
        vector: np.ndarray,
        limit: int,
    ) -> list[SearchResult]:
        """
        Nearest chunks to ``vector``, keeping the best chunk per path.

        Returns an empty list when ``table`` does not exist.
        """
        async with self._lock:
            with _storage_errors("search vectors", table):
                index = await self._get_index(table)
                if index is None:
                    return []

                k = limit * self._oversample
                while True:
                    hits = await index.search(vector, k=k)
                    chunks = await self._repo.get_chunks(table, (row_id for row_id, _ in hits))
                    results = _best_per_path(hits, chunks, limit)
                    if len(results) >= limit or k >= index.size:
                        break
                    k *= 2

        return results

    async def text_search(
        self,
        table: str,
        query: str,
        limit: int,
    ) -> list[SearchResult]:
        """
        Full-text matches for ``query``, keeping the best chunk per path.

        Scores are negated BM25 values, so higher is better.
        """
        match = match_expression(query)
        if not match:
            return []

        with _storage_errors("search text", table):
            if await self._repo.table_dimension(table) is None:
                return []
            rows = await self._repo.search_fts(table, match, limit=limit * self._oversample)

        results: list[SearchResult] = []
        seen: set[str] = set()
        for row in rows:
            if row["path"] in seen:
                continue
            seen.add(row["path"])
            results.append(
                SearchResult(path=row["path"], snippet=row["chunk"], score=-row["score"])
            )
            if len(results) >= limit:
                break
        return results

    async def drop_table(self, table: str) -> None:
        """Drop ``table``; missing tables are ignored."""
        async with self._lock:
            with _storage_errors("drop table", table):
                await self._repo.drop_table(table)
            self._indexes.pop(table, None)

    async def count_rows(self, table: str) -> int:
        with _storage_errors("count rows", table):
            if await self._repo.table_dimension(table) is None:
                return 0
            return await self._repo.count_rows(table)

    async def _get_index(self, table: str) -> FAISSIndex | None:
        """Cached FAISS index for ``table``; caller holds the lock."""
        index = self._indexes.get(table)
        if index is not None:
            return index

        dimension = await self._repo.table_dimension(table)
        if dimension is None:
            return None

        ids, matrix = await self._repo.load_vectors(table, dimension)
        index = FAISSIndex(dimension)
        await index.add(ids, matrix)
        self._indexes[table] = index
        logger.debug("Loaded %d vectors for %s", index.size, table)
        return index


def _best_per_path(
    hits: list[tuple[int, float]],
    chunks: dict[int, tuple[str, str]],
    limit: int,
) -> list[SearchResult]:
    results: list[SearchResult] = []
    seen: set[str] = set()
    for row_id, score in hits:
        found = chunks.get(row_id)
        if found is None:
            continue
        path, chunk = found
        if path in seen:
            continue
        seen.add(path)
        results.append(SearchResult(path=path, snippet=chunk, score=score))
        if len(results) >= limit:
            break
    return results
