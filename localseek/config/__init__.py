"""
Configuration - Application settings, error taxonomy, and persisted config.
"""

from .errors import (
    ConfigPersistError,
    ContainerAlreadyExists,
    EmbeddingError,
    ErrorCode,
    IndexingError,
    LocalSeekError,
    ModelLoadError,
    ModelNotReady,
    NoFoldersToReindex,
    ProtectedContainerDeletion,
    StorageError,
    UnknownContainer,
)
from .settings import Settings, get_settings
from .store import (
    DEFAULT_CONTAINER,
    DEFAULT_EMBEDDING_MODEL,
    AppConfig,
    ConfigStore,
    ContainerInfo,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Persisted config
    "AppConfig",
    "ConfigStore",
    "ContainerInfo",
    "DEFAULT_CONTAINER",
    "DEFAULT_EMBEDDING_MODEL",
    # Errors
    "ErrorCode",
    "LocalSeekError",
    "ConfigPersistError",
    "ContainerAlreadyExists",
    "ProtectedContainerDeletion",
    "UnknownContainer",
    "ModelNotReady",
    "ModelLoadError",
    "EmbeddingError",
    "StorageError",
    "IndexingError",
    "NoFoldersToReindex",
]
