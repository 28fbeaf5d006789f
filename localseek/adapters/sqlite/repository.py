"""
SQLite Repository - Chunk tables with FTS5 search.

Features:
- Async operations via aiosqlite
- One rows table plus one FTS5 index per container table
- Registry of created tables and their vector dimension
- Per-path row replacement for idempotent re-indexing
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import aiosqlite
import numpy as np

logger = logging.getLogger(__name__)

__all__ = ["ChunkRepository"]


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def _literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _derived(table: str, suffix: str) -> str:
    """Name of an object owned by ``table``; container tables never contain "#"."""
    return f"{table}#{suffix}"


class ChunkRepository:
    """
    SQLite repository for chunk rows.

    Each table stores ``(id, path, chunk, vector)`` rows; vectors are raw
    float32 bytes. A companion ``<table>#fts`` virtual table indexes the
    chunk text and is kept in sync by triggers.

    Example:
        >>> repo = ChunkRepository("data/localseek.db")
        >>> await repo.initialize()
        >>> await repo.create_table("c_Default", 768)
        >>> removed, added = await repo.replace_path("c_Default", "/a.md", chunks, vectors)
        >>> rows = await repo.search_fts("c_Default", '"kernel"', limit=30)
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: aiosqlite.Connection | None = None

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(str(self.db_path))
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def initialize(self) -> None:
        """Initialize the table registry."""
        conn = await self._get_connection()

        await conn.executescript("""
            CREATE TABLE IF NOT EXISTS vector_tables (
                name TEXT PRIMARY KEY,
                dimension INTEGER NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
        """)

        await conn.commit()
        logger.info("Database initialized: %s", self.db_path)

    async def table_dimension(self, table: str) -> int | None:
        """Vector dimension of ``table``, or None if it was never created."""
        conn = await self._get_connection()
        cursor = await conn.execute(
            "SELECT dimension FROM vector_tables WHERE name = ?", (table,)
        )
        row = await cursor.fetchone()
        return int(row[0]) if row else None

    async def list_tables(self) -> list[str]:
        conn = await self._get_connection()
        cursor = await conn.execute("SELECT name FROM vector_tables ORDER BY name")
        return [row[0] for row in await cursor.fetchall()]

    async def create_table(self, table: str, dimension: int) -> None:
        """Create the rows table, its FTS5 index and sync triggers."""
        conn = await self._get_connection()
        rows = _quote(table)
        fts = _quote(_derived(table, "fts"))
        path_idx = _quote(_derived(table, "path_idx"))
        after_insert = _quote(_derived(table, "ai"))
        after_delete = _quote(_derived(table, "ad"))

        await conn.executescript(f"""
            CREATE TABLE IF NOT EXISTS {rows} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                path TEXT NOT NULL,
                chunk TEXT NOT NULL,
                vector BLOB NOT NULL
            );

            CREATE INDEX IF NOT EXISTS {path_idx} ON {rows}(path);

            CREATE VIRTUAL TABLE IF NOT EXISTS {fts} USING fts5(
                chunk,
                content={_literal(table)},
                content_rowid='id',
                tokenize='unicode61 remove_diacritics 2'
            );

            CREATE TRIGGER IF NOT EXISTS {after_insert} AFTER INSERT ON {rows} BEGIN
                INSERT INTO {fts}(rowid, chunk) VALUES (new.id, new.chunk);
            END;

            CREATE TRIGGER IF NOT EXISTS {after_delete} AFTER DELETE ON {rows} BEGIN
                INSERT INTO {fts}({fts}, rowid, chunk) VALUES ('delete', old.id, old.chunk);
            END;
        """)

        await conn.execute(
            "INSERT OR REPLACE INTO vector_tables (name, dimension) VALUES (?, ?)",
            (table, dimension),
        )
        await conn.commit()
        logger.info("Created table %s (dimension=%d)", table, dimension)

    async def replace_path(
        self,
        table: str,
        path: str,
        chunks: Sequence[str],
        vectors: np.ndarray,
    ) -> tuple[list[int], list[int]]:
        """
        Replace every row of ``path`` with the given chunks.

        Returns:
            (ids of removed rows, ids of inserted rows)
        """
        conn = await self._get_connection()
        rows = _quote(table)
        matrix = np.asarray(vectors, dtype="float32")

        cursor = await conn.execute(f"SELECT id FROM {rows} WHERE path = ?", (path,))
        removed = [row[0] for row in await cursor.fetchall()]
        if removed:
            await conn.execute(f"DELETE FROM {rows} WHERE path = ?", (path,))

        added: list[int] = []
        for chunk, vector in zip(chunks, matrix):
            cursor = await conn.execute(
                f"INSERT INTO {rows} (path, chunk, vector) VALUES (?, ?, ?)",
                (path, chunk, vector.tobytes()),
            )
            added.append(cursor.lastrowid)

        await conn.commit()
        return removed, added

    async def search_fts(
        self,
        table: str,
        match: str,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        """
        Full-text search using FTS5.

        Args:
            table: Table to search
            match: FTS5 match expression
            limit: Maximum rows

        Returns:
            Rows with 'id', 'path', 'chunk' and BM25 'score' (lower is better)
        """
        conn = await self._get_connection()
        rows = _quote(table)
        fts = _quote(_derived(table, "fts"))

        cursor = await conn.execute(
            f"""
            SELECT t.id, t.path, t.chunk, bm25({fts}) AS score
            FROM {fts}
            JOIN {rows} t ON {fts}.rowid = t.id
            WHERE {fts} MATCH ?
            ORDER BY score
            LIMIT ?
            """,
            (match, limit),
        )
        return [dict(row) for row in await cursor.fetchall()]

    async def load_vectors(self, table: str, dimension: int) -> tuple[np.ndarray, np.ndarray]:
        """All row ids and their vectors as an ``(n, dimension)`` matrix."""
        conn = await self._get_connection()
        cursor = await conn.execute(f"SELECT id, vector FROM {_quote(table)} ORDER BY id")
        fetched = await cursor.fetchall()

        ids = np.array([row[0] for row in fetched], dtype="int64")
        if not fetched:
            return ids, np.empty((0, dimension), dtype="float32")
        matrix = np.vstack([np.frombuffer(row[1], dtype="float32") for row in fetched])
        return ids, matrix

    async def get_chunks(self, table: str, ids: Iterable[int]) -> dict[int, tuple[str, str]]:
        """Map row id to ``(path, chunk)`` for the requested ids."""
        wanted = list(ids)
        if not wanted:
            return {}

        conn = await self._get_connection()
        placeholders = ", ".join("?" for _ in wanted)
        cursor = await conn.execute(
            f"SELECT id, path, chunk FROM {_quote(table)} WHERE id IN ({placeholders})",
            wanted,
        )
        return {row[0]: (row[1], row[2]) for row in await cursor.fetchall()}

    async def count_rows(self, table: str) -> int:
        conn = await self._get_connection()
        cursor = await conn.execute(f"SELECT COUNT(*) FROM {_quote(table)}")
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def drop_table(self, table: str) -> None:
        """Drop ``table`` and its FTS index; missing tables are ignored."""
        conn = await self._get_connection()

        fts = _quote(_derived(table, "fts"))
        await conn.execute(f"DROP TABLE IF EXISTS {fts}")
        await conn.execute(f"DROP TABLE IF EXISTS {_quote(table)}")
        await conn.execute("DELETE FROM vector_tables WHERE name = ?", (table,))
        await conn.commit()
        logger.info("Dropped table %s", table)

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
