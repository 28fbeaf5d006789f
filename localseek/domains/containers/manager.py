"""
Container Manager - Named containers persisted in the config store.

Features:
- Reserved "Default" container that always exists
- Exactly one active container
- Indexed folder list per container (replayed by reindex)
- Full config save after every mutation
"""

from __future__ import annotations

import logging

from localseek.config.errors import (
    ContainerAlreadyExists,
    ProtectedContainerDeletion,
    UnknownContainer,
)
from localseek.config.store import DEFAULT_CONTAINER, ConfigStore, ContainerInfo

from .models import ContainerListItem
from .naming import table_name

logger = logging.getLogger(__name__)

__all__ = ["ContainerManager"]


class ContainerManager:
    """
    Container operations over a ``ConfigStore``.

    Example:
        >>> manager = ContainerManager(await ConfigStore.open("data/config.json"))
        >>> await manager.create("Notes", "personal notes")
        >>> await manager.activate("Notes")
        >>> await manager.active_table()
        'c_Notes'
    """

    def __init__(self, config_store: ConfigStore) -> None:
        self._store = config_store

    async def list_containers(self) -> tuple[list[ContainerListItem], str]:
        """All containers sorted by name, plus the active name."""
        async with self._store.lock:
            config = self._store.config
            items = [
                ContainerListItem(
                    name=name,
                    description=info.description,
                    indexed_paths=list(info.indexed_paths),
                )
                for name, info in sorted(config.containers.items())
            ]
            return items, config.active_container

    async def create(self, name: str, description: str = "") -> None:
        """
        Add an empty container.

        Raises:
            ContainerAlreadyExists: ``name`` is taken
        """
        async with self._store.lock:
            if name in self._store.config.containers:
                raise ContainerAlreadyExists(name)
            self._store.config.containers[name] = ContainerInfo(description=description)
        await self._store.save()
        logger.info("Created container %s", name)

    async def delete(self, name: str) -> str:
        """
        Remove a container from the config.

        Deleting the active container re-activates "Default" first. Unknown
        names are not an error.

        Returns:
            Table of the deleted container, for the caller to drop

        Raises:
            ProtectedContainerDeletion: ``name`` is "Default"
        """
        if name == DEFAULT_CONTAINER:
            raise ProtectedContainerDeletion(name)

        async with self._store.lock:
            config = self._store.config
            if config.active_container == name:
                config.active_container = DEFAULT_CONTAINER
            config.containers.pop(name, None)
        await self._store.save()
        logger.info("Deleted container %s", name)
        return table_name(name)

    async def activate(self, name: str) -> None:
        """
        Make ``name`` the active container.

        Raises:
            UnknownContainer: ``name`` does not exist
        """
        async with self._store.lock:
            if name not in self._store.config.containers:
                raise UnknownContainer(name)
            self._store.config.active_container = name
        await self._store.save()
        logger.info("Active container: %s", name)

    async def active_name(self) -> str:
        async with self._store.lock:
            return self._store.config.active_container

    async def active_table(self) -> str:
        """Table identifier of the active container."""
        return table_name(await self.active_name())

    async def active_paths(self) -> tuple[str, list[str]]:
        """Active table and a copy of its indexed folders."""
        async with self._store.lock:
            config = self._store.config
            info = config.containers.get(config.active_container, ContainerInfo())
            return table_name(config.active_container), list(info.indexed_paths)

    async def add_indexed_path(self, directory: str) -> str:
        """
        Record ``directory`` on the active container (no duplicates).

        Returns:
            Table identifier of the active container
        """
        async with self._store.lock:
            config = self._store.config
            info = config.containers.setdefault(config.active_container, ContainerInfo())
            added = directory not in info.indexed_paths
            if added:
                info.indexed_paths.append(directory)
            active = config.active_container

        if added:
            await self._store.save()
            logger.info("Recorded %s on container %s", directory, active)
        return table_name(active)
