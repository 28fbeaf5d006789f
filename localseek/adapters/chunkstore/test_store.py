"""Tests for Chunk Store."""

from pathlib import Path

import numpy as np
import pytest

from localseek.config.errors import StorageError

from .store import ChunkStore, match_expression


@pytest.fixture
async def store(tmp_path: Path):
    """Create a store with an empty 3-dim table."""
    store = ChunkStore(tmp_path / "test.db")
    await store.initialize()
    await store.create_table("c_Default", 3)
    yield store
    await store.close()


def _rows(*vectors: list[float]) -> np.ndarray:
    return np.array(vectors, dtype="float32")


@pytest.mark.parametrize(
    "query,expected",
    [
        ("kernel panic", '"kernel" "panic"'),
        ('foo AND "bar" -baz*', '"foo" "AND" "bar" "baz"'),
        ("dosya için", '"dosya" "için"'),
        ("?!", ""),
    ],
)
def test_match_expression(query: str, expected: str):
    assert match_expression(query) == expected


async def test_table_exists(store: ChunkStore):
    assert await store.table_exists("c_Default")
    assert not await store.table_exists("c_missing")


async def test_vector_search_best_chunk_per_path(store: ChunkStore):
    """Test several chunks of one file collapse to its best chunk."""
    await store.upsert(
        "c_Default", "/a.md", ["a-near", "a-far"], _rows([1, 0, 0], [0, 0, 1])
    )
    await store.upsert("c_Default", "/b.md", ["b-mid"], _rows([1, 1, 0]))

    results = await store.vector_search("c_Default", np.array([1.0, 0.0, 0.0]), limit=5)

    assert [r.path for r in results] == ["/a.md", "/b.md"]
    assert results[0].snippet == "a-near"
    assert results[0].score == pytest.approx(1.0)


async def test_vector_search_limit(store: ChunkStore):
    for i in range(6):
        await store.upsert("c_Default", f"/f{i}.md", [f"chunk {i}"], _rows([1, i, 0]))

    results = await store.vector_search("c_Default", np.array([1.0, 0.0, 0.0]), limit=2)
    assert [r.path for r in results] == ["/f0.md", "/f1.md"]


async def test_vector_search_sees_replaced_rows(store: ChunkStore):
    """Test re-indexing updates the cached index."""
    await store.upsert("c_Default", "/a.md", ["old"], _rows([1, 0, 0]))
    await store.vector_search("c_Default", np.array([1.0, 0.0, 0.0]), limit=5)

    await store.upsert("c_Default", "/a.md", ["new"], _rows([0, 1, 0]))
    results = await store.vector_search("c_Default", np.array([0.0, 1.0, 0.0]), limit=5)

    assert [r.snippet for r in results] == ["new"]
    assert results[0].score == pytest.approx(1.0)


async def test_vector_search_rebuilds_from_disk(tmp_path: Path):
    """Test stored vectors survive a restart."""
    first = ChunkStore(tmp_path / "test.db")
    await first.initialize()
    await first.create_table("c_Default", 3)
    await first.upsert("c_Default", "/a.md", ["kept"], _rows([0, 0, 1]))
    await first.close()

    second = ChunkStore(tmp_path / "test.db")
    await second.initialize()
    results = await second.vector_search("c_Default", np.array([0.0, 0.0, 1.0]), limit=5)
    await second.close()

    assert [r.snippet for r in results] == ["kept"]


async def test_searches_on_missing_table(store: ChunkStore):
    assert await store.vector_search("c_missing", np.ones(3), limit=5) == []
    assert await store.text_search("c_missing", "anything", limit=5) == []


async def test_text_search(store: ChunkStore):
    """Test lexical matches dedupe by path with positive scores."""
    await store.upsert(
        "c_Default",
        "/kernel.md",
        ["kernel threads", "kernel memory"],
        _rows([1, 0, 0], [0, 1, 0]),
    )
    await store.upsert("c_Default", "/garden.md", ["tomato plants"], _rows([0, 0, 1]))

    results = await store.text_search("c_Default", "kernel", limit=5)

    assert [r.path for r in results] == ["/kernel.md"]
    assert results[0].score > 0


async def test_text_search_empty_expression(store: ChunkStore):
    await store.upsert("c_Default", "/a.md", ["text"], _rows([1, 0, 0]))
    assert await store.text_search("c_Default", "  ?? ", limit=5) == []


async def test_upsert_validation(store: ChunkStore):
    """Test mismatched shapes and missing tables raise StorageError."""
    with pytest.raises(StorageError):
        await store.upsert("c_Default", "/a.md", ["one", "two"], _rows([1, 0, 0]))
    with pytest.raises(StorageError):
        await store.upsert("c_Default", "/a.md", ["one"], np.ones((1, 4), dtype="float32"))
    with pytest.raises(StorageError):
        await store.upsert("c_missing", "/a.md", ["one"], _rows([1, 0, 0]))


async def test_drop_table(store: ChunkStore):
    """Test drop is idempotent and clears search results."""
    await store.upsert("c_Default", "/a.md", ["text"], _rows([1, 0, 0]))
    assert await store.count_rows("c_Default") == 1

    await store.drop_table("c_Default")
    await store.drop_table("c_Default")

    assert not await store.table_exists("c_Default")
    assert await store.count_rows("c_Default") == 0
    assert await store.vector_search("c_Default", np.ones(3), limit=5) == []


async def test_remove_path(store: ChunkStore):
    """Test removed rows disappear from both search channels."""
    await store.upsert("c_Default", "/a.md", ["kernel threads"], _rows([1, 0, 0]))
    await store.upsert("c_Default", "/b.md", ["kernel memory"], _rows([0, 1, 0]))
    await store.vector_search("c_Default", np.array([1, 0, 0]), limit=5)

    assert await store.remove_path("c_Default", "/a.md") == 1
    assert await store.remove_path("c_Default", "/a.md") == 0
    assert await store.remove_path("c_missing", "/a.md") == 0

    vector_hits = await store.vector_search("c_Default", np.array([1, 0, 0]), limit=5)
    text_hits = await store.text_search("c_Default", "kernel", limit=5)
    assert [r.path for r in vector_hits] == ["/b.md"]
    assert [r.path for r in text_hits] == ["/b.md"]
