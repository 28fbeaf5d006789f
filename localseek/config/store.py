"""
Config Store - Persisted user configuration (containers, model selector).

The config is a small JSON document rewritten in full on every mutation:

    {
      "embedding_model": "MultilingualE5Base",
      "containers": {"Default": {"description": "", "indexed_paths": []}},
      "active_container": "Default"
    }

Usage:
    store = await ConfigStore.open(Path("data/config.json"))
    async with store.lock:
        store.config.containers["Docs"] = ContainerInfo(description="notes")
    await store.save()
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigPersistError

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_CONTAINER",
    "DEFAULT_EMBEDDING_MODEL",
    "AppConfig",
    "ConfigStore",
    "ContainerInfo",
]

DEFAULT_CONTAINER = "Default"
DEFAULT_EMBEDDING_MODEL = "MultilingualE5Base"


class ContainerInfo(BaseModel):
    """Metadata of one container."""

    description: str = ""
    indexed_paths: list[str] = Field(default_factory=list)


class AppConfig(BaseModel):
    """Persisted configuration record."""

    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    containers: dict[str, ContainerInfo] = Field(
        default_factory=lambda: {DEFAULT_CONTAINER: ContainerInfo()}
    )
    active_container: str = DEFAULT_CONTAINER

    def ensure_default(self) -> None:
        """Restore the reserved container and a valid active selection."""
        self.containers.setdefault(DEFAULT_CONTAINER, ContainerInfo())
        if self.active_container not in self.containers:
            self.active_container = DEFAULT_CONTAINER


class ConfigStore:
    """
    Owns the in-memory ``AppConfig`` and its file.

    ``lock`` guards mutation of ``config``. ``save`` takes the lock only to
    snapshot, so callers must release it before saving.
    """

    def __init__(self, path: str | Path, config: AppConfig | None = None) -> None:
        self.path = Path(path)
        self.config = config or AppConfig()
        self.lock = asyncio.Lock()

    @classmethod
    async def open(cls, path: str | Path) -> ConfigStore:
        """Load the config at ``path``, or start from defaults if absent."""
        path = Path(path)
        config = await asyncio.to_thread(cls._read, path)
        return cls(path, config)

    @staticmethod
    def _read(path: Path) -> AppConfig:
        """Read and validate config file (sync helper for to_thread)."""
        if not path.exists():
            logger.info("No config at %s, using defaults", path)
            return AppConfig()
        try:
            config = AppConfig.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise ConfigPersistError(
                f"Failed to load config: {e}", {"path": str(path)}
            ) from e
        config.ensure_default()
        return config

    async def save(self) -> None:
        """
        Write the full config as pretty-printed JSON.

        The lock is held until the file is written, so saves land in order.
        """
        async with self.lock:
            content = self.config.model_dump_json(indent=2)
            try:
                await asyncio.to_thread(self._write, self.path, content)
            except OSError as e:
                raise ConfigPersistError(
                    f"Failed to save config: {e}", {"path": str(self.path)}
                ) from e
        logger.debug("Config saved to %s", self.path)

    @staticmethod
    def _write(path: Path, content: str) -> None:
        """Write config file (sync helper for to_thread)."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
