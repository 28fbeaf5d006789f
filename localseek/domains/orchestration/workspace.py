"""
Workspace - The operation surface of the application.

Every user-facing operation (API route, CLI command) goes through here:
container management, search over the active container and indexing with
progress notifications.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from localseek.config.errors import IndexingError, StorageError
from localseek.domains.containers import ContainerListItem, ContainerManager
from localseek.domains.indexing import (
    IndexingOptions,
    ProgressBroadcaster,
    index_directory,
    reindex_paths,
    reset_index,
)
from localseek.domains.search import HybridSearchEngine, SearchResult

if TYPE_CHECKING:
    from .context import AppContext

logger = logging.getLogger(__name__)

__all__ = ["Workspace"]


class Workspace:
    """
    Application operations over a shared ``AppContext``.

    Example:
        >>> workspace = Workspace(await AppContext.create())
        >>> await workspace.create_container("Notes", "personal notes")
        >>> await workspace.set_active_container("Notes")
        >>> await workspace.index_folder("/home/me/notes")
        'Indexed 42 files'
    """

    def __init__(self, context: AppContext) -> None:
        settings = context.settings
        self._context = context
        self._containers = ContainerManager(context.config_store)
        self._options = IndexingOptions.from_settings(settings)
        self._engine = HybridSearchEngine(
            context.store,
            context.embedder,
            context.reranker_pool if settings.reranker_enabled else None,
            vector_limit=settings.vector_search_limit,
            text_limit=settings.text_search_limit,
            fusion_limit=settings.fusion_limit,
            rerank_limit=settings.rerank_limit,
            result_limit=settings.result_limit,
            rrf_k=settings.rrf_k,
        )

    @property
    def events(self) -> ProgressBroadcaster:
        return self._context.events

    # --- Containers ---

    async def list_containers(self) -> tuple[list[ContainerListItem], str]:
        """All containers sorted by name, plus the active one."""
        return await self._containers.list_containers()

    async def create_container(self, name: str, description: str = "") -> None:
        await self._containers.create(name, description)

    async def delete_container(self, name: str) -> None:
        """
        Delete a container and drop its table.

        A failed drop is logged; the container is already gone from the
        config at that point.
        """
        table = await self._containers.delete(name)
        try:
            await self._context.store.drop_table(table)
        except StorageError as e:
            logger.warning("Could not drop table %s: %s", table, e.message)

    async def set_active_container(self, name: str) -> None:
        await self._containers.activate(name)

    # --- Search ---

    async def search(self, query: str) -> list[SearchResult]:
        """Hybrid search over the active container."""
        table = await self._containers.active_table()
        return await self._engine.search(query, table)

    # --- Indexing ---

    async def index_folder(self, directory: str) -> str:
        """
        Record ``directory`` on the active container and index it.

        Returns:
            "Indexed N files"
        """
        root = Path(directory).expanduser().resolve()
        if not root.is_dir():
            raise IndexingError(f"Not a directory: {directory}", {"path": str(directory)})

        table = await self._containers.add_indexed_path(str(root))
        count = await index_directory(
            root,
            table,
            self._context.store,
            self._context.embedder,
            self._options,
            self.events.progress,
        )

        self.events.complete(f"{count} files indexed")
        return f"Indexed {count} files"

    async def reset_index(self) -> None:
        """Drop the active container's table (its folder list is kept)."""
        table = await self._containers.active_table()
        await reset_index(self._context.store, table)

    async def reindex_all(self) -> str:
        """
        Re-index every folder recorded on the active container.

        Returns:
            "Reindexed N files from M folders"

        Raises:
            NoFoldersToReindex: No folder was ever indexed
        """
        table, paths = await self._containers.active_paths()
        total = await reindex_paths(
            paths,
            table,
            self._context.store,
            self._context.embedder,
            self._options,
            self.events.progress,
        )

        self.events.complete(f"{total} files reindexed from {len(paths)} folders")
        return f"Reindexed {total} files from {len(paths)} folders"

    # --- Status ---

    async def status(self) -> dict[str, Any]:
        """Model and storage state for health reporting."""
        table = await self._containers.active_table()
        embedder = self._context.embedder
        return {
            "active_container": await self._containers.active_name(),
            "table": table,
            "rows": await self._context.store.count_rows(table),
            "embedding_model": embedder.model_name,
            "model_state": embedder.state.value,
            "model_error": embedder.init_error,
            "rerankers_available": self._context.reranker_pool.available,
        }
