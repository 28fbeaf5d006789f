"""
App Context - Process-wide handles built once at startup.

Holds the config store, chunk store, embedding model, reranker pool and
progress broadcaster. Models load in background tasks so the application
is usable (containers, listing) before they are ready.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from localseek.adapters.chunkstore import ChunkStore
from localseek.adapters.embedding import EmbeddingService, RerankerPool, load_reranker
from localseek.config import ConfigStore, Settings, get_settings
from localseek.domains.indexing import ProgressBroadcaster

logger = logging.getLogger(__name__)

__all__ = ["AppContext"]


@dataclass
class AppContext:
    """Shared application state passed to ``Workspace``."""

    settings: Settings
    config_store: ConfigStore
    store: ChunkStore
    embedder: EmbeddingService
    reranker_pool: RerankerPool
    events: ProgressBroadcaster = field(default_factory=ProgressBroadcaster)
    _tasks: list[asyncio.Task[None]] = field(default_factory=list, init=False, repr=False)

    @classmethod
    async def create(cls, settings: Settings | None = None) -> AppContext:
        """
        Open the config, initialize storage and prepare (not load) models.

        Raises:
            ConfigPersistError: Config file unreadable
            StorageError: Database could not be initialized
        """
        settings = settings or get_settings()

        config_store = await ConfigStore.open(settings.config_path)
        store = ChunkStore(settings.db_path)
        await store.initialize()

        embedder = EmbeddingService(
            config_store.config.embedding_model,
            cache_dir=settings.model_cache_dir,
            batch_size=settings.embed_batch_size,
        )

        logger.info(
            "Context ready (config=%s, db=%s, model=%s)",
            settings.config_path,
            settings.db_path,
            embedder.model_name,
        )
        return cls(
            settings=settings,
            config_store=config_store,
            store=store,
            embedder=embedder,
            reranker_pool=RerankerPool(),
        )

    def start_models(self) -> None:
        """Schedule model loading in the background."""
        self._tasks.append(asyncio.create_task(self.embedder.load()))
        if self.settings.reranker_enabled:
            for _ in range(self.settings.reranker_pool_size):
                self._tasks.append(asyncio.create_task(self._load_reranker()))

    async def load_models(self) -> None:
        """Load models and wait for them (used by one-shot CLI commands)."""
        self.start_models()
        await asyncio.gather(*self._tasks)

    async def load_embedder(self) -> None:
        """Load only the embedding model (indexing needs no reranker)."""
        await self.embedder.load()

    async def _load_reranker(self) -> None:
        try:
            reranker = await asyncio.to_thread(
                load_reranker, self.settings.reranker_model, self.settings.model_cache_dir
            )
        except Exception as e:
            logger.warning("Reranker unavailable, searching without it: %s", e)
            return
        self.reranker_pool.add(reranker)
        logger.info("Reranker ready (%d in pool)", self.reranker_pool.size)

    async def close(self) -> None:
        """Cancel pending model loads and close storage."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        await self.store.close()
