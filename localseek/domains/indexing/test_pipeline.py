"""
Tests for directory indexing, reset, reindex and progress broadcasting.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from localseek.config.errors import EmbeddingError, IndexingError, NoFoldersToReindex

from .models import IndexingComplete, IndexingOptions, IndexingProgress
from .pipeline import discover_files, index_directory, reindex_paths, reset_index
from .progress import ProgressBroadcaster


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """Create a small folder tree with indexable and ignored files."""
    root = tmp_path / "docs"
    (root / "sub").mkdir(parents=True)
    (root / "node_modules").mkdir()
    (root / ".hidden").mkdir()

    (root / "readme.md").write_text("# Title\n\nIntro paragraph.\n", encoding="utf-8")
    (root / "sub" / "main.rs").write_text("fn main() {\n    run();\n}\n", encoding="utf-8")
    (root / "sub" / "empty.txt").write_text("   \n", encoding="utf-8")
    (root / "image.png").write_bytes(b"\x89PNG")
    (root / "node_modules" / "lib.js").write_text("function x() {}\n", encoding="utf-8")
    (root / ".hidden" / "secret.md").write_text("# hidden\n", encoding="utf-8")
    return root


@pytest.fixture
def mock_store() -> AsyncMock:
    """Create a mock chunk store without any tables."""
    store = AsyncMock()
    store.table_exists.return_value = False
    store.upsert.side_effect = lambda table, path, chunks, vectors: len(chunks)
    store.remove_path.return_value = 0
    return store


@pytest.fixture
def mock_embedder() -> AsyncMock:
    """Create a mock embedder returning 4-dim vectors."""
    embedder = AsyncMock()
    embedder.embed_passages.side_effect = lambda texts: np.ones((len(texts), 4), dtype="float32")
    embedder.detect_dimension.return_value = 4
    return embedder


# --- discover_files Tests ---


def test_discover_files_applies_policy(docs_dir: Path) -> None:
    """Test hidden, vendor, unknown-extension files are skipped."""
    files = discover_files(docs_dir, IndexingOptions())
    names = [p.name for p in files]
    assert names == ["readme.md", "empty.txt", "main.rs"]


def test_discover_files_size_limit(docs_dir: Path) -> None:
    """Test files above max_file_bytes are skipped."""
    files = discover_files(docs_dir, IndexingOptions(max_file_bytes=10))
    assert [p.name for p in files] == ["empty.txt"]


# --- index_directory Tests ---


async def test_index_directory_indexes_and_reports(
    docs_dir: Path, mock_store: AsyncMock, mock_embedder: AsyncMock
) -> None:
    """Test eligible files are chunked, embedded, upserted and reported."""
    progress: list[tuple[int, int, str]] = []

    count = await index_directory(
        docs_dir,
        "c_Default",
        mock_store,
        mock_embedder,
        IndexingOptions(),
        lambda current, total, path: progress.append((current, total, path)),
    )

    # empty.txt is whitespace-only: reported but not indexed
    assert count == 2
    assert [p[0] for p in progress] == [1, 2, 3]
    assert all(p[1] == 3 for p in progress)

    mock_store.create_table.assert_awaited_once_with("c_Default", 4)
    upserted_paths = [call.args[1] for call in mock_store.upsert.await_args_list]
    assert upserted_paths == [str(docs_dir / "readme.md"), str(docs_dir / "sub" / "main.rs")]


async def test_index_directory_existing_table_not_recreated(
    docs_dir: Path, mock_store: AsyncMock, mock_embedder: AsyncMock
) -> None:
    """Test dimension detection only runs for a missing table."""
    mock_store.table_exists.return_value = True

    await index_directory(docs_dir, "c_Default", mock_store, mock_embedder, IndexingOptions())

    mock_store.create_table.assert_not_awaited()
    mock_embedder.detect_dimension.assert_not_awaited()


async def test_index_directory_clears_blank_file_rows(
    docs_dir: Path, mock_store: AsyncMock, mock_embedder: AsyncMock
) -> None:
    """Test a file that became whitespace-only loses its earlier rows."""
    mock_store.table_exists.return_value = True
    mock_store.remove_path.return_value = 2

    count = await index_directory(
        docs_dir, "c_Default", mock_store, mock_embedder, IndexingOptions()
    )

    assert count == 2
    mock_store.remove_path.assert_awaited_once_with(
        "c_Default", str(docs_dir / "sub" / "empty.txt")
    )


async def test_index_directory_progress_failure_ignored(
    docs_dir: Path, mock_store: AsyncMock, mock_embedder: AsyncMock
) -> None:
    """Test a broken listener never aborts indexing."""
    listener = MagicMock(side_effect=RuntimeError("channel closed"))

    count = await index_directory(
        docs_dir, "c_Default", mock_store, mock_embedder, IndexingOptions(), listener
    )

    assert count == 2
    assert listener.call_count == 3


async def test_index_directory_embedding_failure_aborts(
    docs_dir: Path, mock_store: AsyncMock, mock_embedder: AsyncMock
) -> None:
    """Test a per-file failure aborts the whole call."""
    mock_embedder.embed_passages.side_effect = EmbeddingError("Embedding failed: boom")

    with pytest.raises(EmbeddingError):
        await index_directory(docs_dir, "c_Default", mock_store, mock_embedder, IndexingOptions())
    mock_store.upsert.assert_not_awaited()


async def test_index_directory_missing_directory(
    tmp_path: Path, mock_store: AsyncMock, mock_embedder: AsyncMock
) -> None:
    with pytest.raises(IndexingError):
        await index_directory(
            tmp_path / "nope", "c_Default", mock_store, mock_embedder, IndexingOptions()
        )


# --- reset / reindex Tests ---


async def test_reset_index_drops_table(mock_store: AsyncMock) -> None:
    await reset_index(mock_store, "c_Default")
    mock_store.drop_table.assert_awaited_once_with("c_Default")


async def test_reindex_paths_accumulates(
    docs_dir: Path, tmp_path: Path, mock_store: AsyncMock, mock_embedder: AsyncMock
) -> None:
    """Test folders are replayed in order and counts summed."""
    other = tmp_path / "other"
    other.mkdir()
    (other / "notes.txt").write_text("Some notes.\n", encoding="utf-8")

    total = await reindex_paths(
        [str(docs_dir), str(other)], "c_Default", mock_store, mock_embedder, IndexingOptions()
    )
    assert total == 3


async def test_reindex_paths_empty_fails_fast(
    mock_store: AsyncMock, mock_embedder: AsyncMock
) -> None:
    with pytest.raises(NoFoldersToReindex):
        await reindex_paths([], "c_Default", mock_store, mock_embedder, IndexingOptions())


async def test_reindex_paths_aborts_on_first_failure(
    docs_dir: Path, tmp_path: Path, mock_store: AsyncMock, mock_embedder: AsyncMock
) -> None:
    """Test a missing folder aborts before later folders run."""
    with pytest.raises(IndexingError):
        await reindex_paths(
            [str(tmp_path / "missing"), str(docs_dir)],
            "c_Default",
            mock_store,
            mock_embedder,
            IndexingOptions(),
        )
    mock_store.upsert.assert_not_awaited()


# --- ProgressBroadcaster Tests ---


async def test_broadcaster_fans_out_events() -> None:
    events = ProgressBroadcaster()
    first = events.subscribe()
    second = events.subscribe()

    events.progress(1, 2, "/a.md")
    events.complete("2 files indexed")

    for queue in (first, second):
        progress = queue.get_nowait()
        assert isinstance(progress, IndexingProgress)
        assert (progress.current, progress.total, progress.path) == (1, 2, "/a.md")
        done = queue.get_nowait()
        assert isinstance(done, IndexingComplete)
        assert done.message == "2 files indexed"


async def test_broadcaster_never_raises() -> None:
    """Test publishing without or with full subscribers is silent."""
    events = ProgressBroadcaster(max_queue_size=1)
    events.progress(1, 1, "/a.md")

    queue = events.subscribe()
    events.progress(1, 2, "/a.md")
    events.progress(2, 2, "/b.md")
    assert queue.qsize() == 1

    events.unsubscribe(queue)
    assert events.subscriber_count == 0
