"""
Tests for the workspace operations, end to end over real storage.

The sentence-transformers model is replaced by a deterministic
bag-of-words encoder; config, SQLite and FAISS are real.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import numpy as np
import pytest

from localseek.adapters.chunkstore import ChunkStore
from localseek.adapters.embedding import EmbeddingService, RerankerPool
from localseek.config import ConfigStore, Settings
from localseek.config.errors import (
    ContainerAlreadyExists,
    IndexingError,
    ModelNotReady,
    NoFoldersToReindex,
    ProtectedContainerDeletion,
    UnknownContainer,
)
from localseek.domains.indexing import IndexingComplete, IndexingProgress

from .context import AppContext
from .workspace import Workspace

DIMENSION = 16


def _encode(texts: list[str], **kwargs) -> np.ndarray:
    """Hash each word into one of DIMENSION buckets."""
    vectors = np.zeros((len(texts), DIMENSION), dtype="float32")
    for row, text in enumerate(texts):
        for word in text.lower().split():
            vectors[row, sum(map(ord, word)) % DIMENSION] += 1.0
    return vectors


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=tmp_path,
        config_path=tmp_path / "config.json",
        db_path=tmp_path / "localseek.db",
        model_cache_dir=tmp_path / "models",
        reranker_enabled=False,
    )


@pytest.fixture
async def context(settings: Settings):
    """Create a context with a ready fake embedding model."""
    model = MagicMock()
    model.encode.side_effect = _encode

    store = ChunkStore(settings.db_path)
    await store.initialize()
    context = AppContext(
        settings=settings,
        config_store=await ConfigStore.open(settings.config_path),
        store=store,
        embedder=EmbeddingService(model=model),
        reranker_pool=RerankerPool(),
    )
    yield context
    await context.close()


@pytest.fixture
def workspace(context: AppContext) -> Workspace:
    return Workspace(context)


@pytest.fixture
def notes_dir(tmp_path: Path) -> Path:
    root = tmp_path / "notes"
    root.mkdir()
    (root / "kernel.md").write_text(
        "# Kernel\n\nThe kernel scheduler decides which thread runs next.\n",
        encoding="utf-8",
    )
    (root / "garden.txt").write_text(
        "Tomatoes need sun and water every morning.\n", encoding="utf-8"
    )
    return root


# --- Containers ---


async def test_container_lifecycle(workspace: Workspace) -> None:
    """Test create, activate and delete with active fallback."""
    await workspace.create_container("Work", "job files")
    await workspace.set_active_container("Work")

    items, active = await workspace.list_containers()
    assert [item.name for item in items] == ["Default", "Work"]
    assert active == "Work"

    await workspace.delete_container("Work")
    items, active = await workspace.list_containers()
    assert [item.name for item in items] == ["Default"]
    assert active == "Default"


async def test_container_errors(workspace: Workspace) -> None:
    await workspace.create_container("Work")
    with pytest.raises(ContainerAlreadyExists):
        await workspace.create_container("Work")
    with pytest.raises(ProtectedContainerDeletion):
        await workspace.delete_container("Default")
    with pytest.raises(UnknownContainer):
        await workspace.set_active_container("Ghost")


async def test_delete_container_drops_table(
    workspace: Workspace, context: AppContext, notes_dir: Path
) -> None:
    await workspace.create_container("Work")
    await workspace.set_active_container("Work")
    await workspace.index_folder(str(notes_dir))
    assert await context.store.table_exists("c_Work")

    await workspace.delete_container("Work")

    assert not await context.store.table_exists("c_Work")


async def test_delete_container_keeps_similarly_named_container(
    workspace: Workspace, context: AppContext, notes_dir: Path
) -> None:
    """Test deleting "Docs_fts" leaves the index of "Docs" intact."""
    await workspace.create_container("Docs")
    await workspace.create_container("Docs_fts")
    await workspace.set_active_container("Docs")
    await workspace.index_folder(str(notes_dir))

    await workspace.delete_container("Docs_fts")

    hits = await context.store.text_search("c_Docs", "kernel", 30)
    assert [hit.path for hit in hits] == [str(notes_dir.resolve() / "kernel.md")]
    assert await workspace.reindex_all() == "Reindexed 2 files from 1 folders"


# --- Indexing and search ---


async def test_index_folder_and_search(
    workspace: Workspace, context: AppContext, notes_dir: Path
) -> None:
    """Test indexing records the folder, notifies and makes files searchable."""
    queue = workspace.events.subscribe()

    message = await workspace.index_folder(str(notes_dir))

    assert message == "Indexed 2 files"
    events = [queue.get_nowait() for _ in range(queue.qsize())]
    assert [type(e) for e in events] == [IndexingProgress, IndexingProgress, IndexingComplete]
    assert events[-1].message == "2 files indexed"

    items, _ = await workspace.list_containers()
    assert items[0].indexed_paths == [str(notes_dir.resolve())]

    results = await workspace.search("kernel scheduler")
    assert results[0].path == str(notes_dir.resolve() / "kernel.md")
    assert all(0.0 <= r.score <= 1.0 for r in results)


async def test_index_folder_is_idempotent(
    workspace: Workspace, context: AppContext, notes_dir: Path
) -> None:
    await workspace.index_folder(str(notes_dir))
    rows = await context.store.count_rows("c_Default")

    await workspace.index_folder(str(notes_dir))

    assert await context.store.count_rows("c_Default") == rows
    items, _ = await workspace.list_containers()
    assert len(items[0].indexed_paths) == 1


async def test_index_folder_not_a_directory(workspace: Workspace, tmp_path: Path) -> None:
    with pytest.raises(IndexingError):
        await workspace.index_folder(str(tmp_path / "missing"))

    items, _ = await workspace.list_containers()
    assert items[0].indexed_paths == []


async def test_search_is_scoped_to_active_container(
    workspace: Workspace, notes_dir: Path
) -> None:
    await workspace.index_folder(str(notes_dir))
    await workspace.create_container("Empty")
    await workspace.set_active_container("Empty")

    assert await workspace.search("kernel scheduler") == []


async def test_reset_index(workspace: Workspace, notes_dir: Path) -> None:
    """Test reset empties search but keeps the folder list."""
    await workspace.index_folder(str(notes_dir))

    await workspace.reset_index()
    await workspace.reset_index()

    assert await workspace.search("kernel") == []
    items, _ = await workspace.list_containers()
    assert items[0].indexed_paths == [str(notes_dir.resolve())]


async def test_reindex_all(workspace: Workspace, notes_dir: Path) -> None:
    await workspace.index_folder(str(notes_dir))
    await workspace.reset_index()
    queue = workspace.events.subscribe()

    message = await workspace.reindex_all()

    assert message == "Reindexed 2 files from 1 folders"
    events = [queue.get_nowait() for _ in range(queue.qsize())]
    assert events[-1].message == "2 files reindexed from 1 folders"
    assert (await workspace.search("tomatoes water"))[0].path.endswith("garden.txt")


async def test_reindex_all_without_folders(workspace: Workspace) -> None:
    with pytest.raises(NoFoldersToReindex) as exc_info:
        await workspace.reindex_all()
    assert exc_info.value.message == "No folders to reindex"


async def test_search_while_model_loading(context: AppContext) -> None:
    context.embedder = EmbeddingService()
    workspace = Workspace(context)

    with pytest.raises(ModelNotReady):
        await workspace.search("anything")


async def test_status(workspace: Workspace, notes_dir: Path) -> None:
    await workspace.index_folder(str(notes_dir))

    status = await workspace.status()

    assert status["active_container"] == "Default"
    assert status["table"] == "c_Default"
    assert status["rows"] >= 2
    assert status["model_state"] == "ready"


async def test_reindex_drops_rows_of_blanked_file(
    workspace: Workspace, context: AppContext, notes_dir: Path
) -> None:
    await workspace.index_folder(str(notes_dir))
    (notes_dir / "garden.txt").write_text("  \n", encoding="utf-8")

    await workspace.reindex_all()

    hits = await context.store.text_search("c_Default", "tomatoes", 30)
    assert hits == []
