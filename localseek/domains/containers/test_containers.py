"""
Tests for table naming and the container manager.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from localseek.config.errors import (
    ContainerAlreadyExists,
    ProtectedContainerDeletion,
    UnknownContainer,
)
from localseek.config.store import ConfigStore

from .manager import ContainerManager
from .naming import table_name


# --- table_name Tests ---


@pytest.mark.parametrize(
    "container,expected",
    [
        ("Default", "c_Default"),
        ("my-docs_v1.2", "c_my-docs_v1.2"),
        ("My Docs", "c_My0020Docs"),
        ("Çalışma", "c_00c7al0131015fma"),
        ("a/b", "c_a002fb"),
        ("notes😀", "c_notes1f600"),
        ("", "c_"),
    ],
)
def test_table_name(container: str, expected: str) -> None:
    assert table_name(container) == expected


def test_table_name_only_safe_characters() -> None:
    name = table_name("weird name!@# ünïcode")
    assert all(c.isascii() and (c.isalnum() or c in "_-.") for c in name)


# --- ContainerManager Tests ---


@pytest.fixture
async def config_store(tmp_path: Path) -> ConfigStore:
    return await ConfigStore.open(tmp_path / "config.json")


@pytest.fixture
def manager(config_store: ConfigStore) -> ContainerManager:
    return ContainerManager(config_store)


def _saved(config_store: ConfigStore) -> dict:
    return json.loads(config_store.path.read_text(encoding="utf-8"))


async def test_list_default(manager: ContainerManager) -> None:
    items, active = await manager.list_containers()
    assert [item.name for item in items] == ["Default"]
    assert active == "Default"


async def test_create_and_list_sorted(
    manager: ContainerManager, config_store: ConfigStore
) -> None:
    """Test creation persists and listing is sorted by name."""
    await manager.create("Work", "job files")
    await manager.create("Archive")

    items, _ = await manager.list_containers()
    assert [item.name for item in items] == ["Archive", "Default", "Work"]
    assert items[2].description == "job files"
    assert set(_saved(config_store)["containers"]) == {"Archive", "Default", "Work"}


async def test_create_duplicate(manager: ContainerManager) -> None:
    await manager.create("Work")
    with pytest.raises(ContainerAlreadyExists) as exc_info:
        await manager.create("Work")
    assert exc_info.value.message == "Container already exists"


async def test_delete_default_forbidden(manager: ContainerManager) -> None:
    with pytest.raises(ProtectedContainerDeletion) as exc_info:
        await manager.delete("Default")
    assert exc_info.value.message == "Cannot delete Default container"


async def test_delete_active_reactivates_default(
    manager: ContainerManager, config_store: ConfigStore
) -> None:
    await manager.create("Work")
    await manager.activate("Work")

    table = await manager.delete("Work")

    assert table == "c_Work"
    assert await manager.active_name() == "Default"
    saved = _saved(config_store)
    assert saved["active_container"] == "Default"
    assert "Work" not in saved["containers"]


async def test_delete_unknown_is_noop(manager: ContainerManager) -> None:
    assert await manager.delete("Ghost") == "c_Ghost"
    items, _ = await manager.list_containers()
    assert [item.name for item in items] == ["Default"]


async def test_activate_unknown(manager: ContainerManager) -> None:
    with pytest.raises(UnknownContainer) as exc_info:
        await manager.activate("Ghost")
    assert exc_info.value.message == "Container does not exist"
    assert await manager.active_name() == "Default"


async def test_active_table(manager: ContainerManager) -> None:
    await manager.create("My Docs")
    await manager.activate("My Docs")
    assert await manager.active_table() == "c_My0020Docs"


async def test_add_indexed_path_no_duplicates(
    manager: ContainerManager, config_store: ConfigStore
) -> None:
    """Test folders are recorded in order, once, on the active container."""
    assert await manager.add_indexed_path("/data/a") == "c_Default"
    await manager.add_indexed_path("/data/b")
    await manager.add_indexed_path("/data/a")

    table, paths = await manager.active_paths()
    assert table == "c_Default"
    assert paths == ["/data/a", "/data/b"]
    assert _saved(config_store)["containers"]["Default"]["indexed_paths"] == ["/data/a", "/data/b"]


async def test_state_survives_reopen(manager: ContainerManager, tmp_path: Path) -> None:
    await manager.create("Work", "job files")
    await manager.activate("Work")
    await manager.add_indexed_path("/data/work")

    reopened = ContainerManager(await ConfigStore.open(tmp_path / "config.json"))
    items, active = await reopened.list_containers()

    assert active == "Work"
    work = next(item for item in items if item.name == "Work")
    assert work.indexed_paths == ["/data/work"]
