"""
Indexing Pipeline - Walk a directory, chunk, embed and upsert each file.

Features:
- Structure-aware chunking per file extension
- Lazy table creation sized by the model's output dimension
- Per-file progress callbacks that can never abort indexing
- Sequential multi-folder reindexing
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from localseek.config.errors import IndexingError, NoFoldersToReindex

from .chunking import semantic_chunk, supported_extensions
from .contracts import ChunkTableStore, PassageEmbedder, ProgressCallback
from .models import IndexingOptions

logger = logging.getLogger(__name__)

__all__ = ["discover_files", "index_directory", "reindex_paths", "reset_index"]


def discover_files(root: Path, options: IndexingOptions) -> list[Path]:
    """
    List indexable files under ``root``, sorted for a stable order.

    Skips hidden entries (unless enabled), configured build/vendor
    directories, unknown extensions and files above the size limit.
    """
    extensions = supported_extensions()
    found: list[Path] = []

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d
            for d in dirnames
            if d not in options.skip_dirs and (options.include_hidden or not d.startswith("."))
        )
        for filename in filenames:
            if not options.include_hidden and filename.startswith("."):
                continue
            path = Path(dirpath) / filename
            if path.suffix.lstrip(".").lower() not in extensions:
                continue
            try:
                size = path.stat().st_size
            except OSError:
                logger.debug("Skipping unreadable entry %s", path)
                continue
            if size > options.max_file_bytes:
                logger.debug("Skipping %s (%d bytes over limit)", path, size)
                continue
            found.append(path)

    return sorted(found)


async def index_directory(
    directory: str | Path,
    table: str,
    store: ChunkTableStore,
    embedder: PassageEmbedder,
    options: IndexingOptions,
    on_progress: ProgressCallback | None = None,
) -> int:
    """
    Index every eligible file below ``directory`` into ``table``.

    Args:
        directory: Root folder to walk recursively
        table: Target table (created on first use)
        store: Chunk storage
        embedder: Passage embedding model
        options: File inclusion policy
        on_progress: Called as ``(current, total, path)`` after each file

    Returns:
        Number of files that produced rows

    Raises:
        IndexingError: Directory missing or a file could not be read
        EmbeddingError: Encoding failed
        StorageError: Table create or upsert failed
    """
    root = Path(directory)
    if not root.is_dir():
        raise IndexingError(f"Not a directory: {directory}", {"path": str(directory)})

    files = await asyncio.to_thread(discover_files, root, options)
    total = len(files)
    logger.info("Indexing %s into %s (%d files)", root, table, total)

    table_ready = await store.table_exists(table)
    indexed = 0

    for current, path in enumerate(files, 1):
        text = await _read_text(path)
        if text.strip():
            chunks = semantic_chunk(text, path.suffix)
            vectors = await embedder.embed_passages(chunks)

            if not table_ready:
                dimension = await embedder.detect_dimension()
                await store.create_table(table, dimension)
                table_ready = True

            rows = await store.upsert(table, str(path), chunks, vectors)
            indexed += 1
            logger.debug("Indexed %s (%d chunks)", path, rows)
        elif table_ready:
            removed = await store.remove_path(table, str(path))
            if removed:
                logger.debug("Removed %d stale rows of blank file %s", removed, path)

        _notify(on_progress, current, total, str(path))

    logger.info("Indexed %d/%d files from %s", indexed, total, root)
    return indexed


async def reset_index(store: ChunkTableStore, table: str) -> None:
    """Drop ``table``; calling it for a missing table is not an error."""
    await store.drop_table(table)
    logger.info("Reset index %s", table)


async def reindex_paths(
    paths: Sequence[str],
    table: str,
    store: ChunkTableStore,
    embedder: PassageEmbedder,
    options: IndexingOptions,
    on_progress: ProgressCallback | None = None,
) -> int:
    """
    Re-run ``index_directory`` over each folder in order.

    The first failing folder aborts the call; counts from folders already
    processed are not returned.
    """
    if not paths:
        raise NoFoldersToReindex()

    total = 0
    for directory in paths:
        total += await index_directory(directory, table, store, embedder, options, on_progress)
    return total


async def _read_text(path: Path) -> str:
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")
    except OSError as e:
        raise IndexingError(f"Failed to read {path}: {e}", {"path": str(path)}) from e


def _notify(on_progress: ProgressCallback | None, current: int, total: int, path: str) -> None:
    if on_progress is None:
        return
    try:
        on_progress(current, total, path)
    except Exception:
        logger.debug("Progress listener failed for %s", path, exc_info=True)
