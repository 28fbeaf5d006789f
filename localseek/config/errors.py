"""
Error Taxonomy - Consistent error codes across the application.

Every error that crosses an operation boundary carries a human-readable
message; the code is for machine consumers (HTTP status mapping, logs).

Usage:
    from localseek.config.errors import ErrorCode, LocalSeekError

    raise LocalSeekError(ErrorCode.STORAGE_FAILED, "Table create failed")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Configuration errors
    CONFIG_PERSIST_FAILED = "CONFIG_PERSIST_FAILED"

    # Container errors
    CONTAINER_ALREADY_EXISTS = "CONTAINER_ALREADY_EXISTS"
    CONTAINER_PROTECTED = "CONTAINER_PROTECTED"
    CONTAINER_NOT_FOUND = "CONTAINER_NOT_FOUND"

    # Model errors
    MODEL_NOT_READY = "MODEL_NOT_READY"
    MODEL_LOAD_FAILED = "MODEL_LOAD_FAILED"
    EMBEDDING_FAILED = "EMBEDDING_FAILED"

    # Storage errors
    STORAGE_FAILED = "STORAGE_FAILED"

    # Indexing errors
    INDEXING_FAILED = "INDEXING_FAILED"
    NO_FOLDERS_TO_REINDEX = "NO_FOLDERS_TO_REINDEX"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"


class LocalSeekError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigPersistError(LocalSeekError):
    """Config file could not be read, parsed or written."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.CONFIG_PERSIST_FAILED, message, details)


class ContainerAlreadyExists(LocalSeekError):
    def __init__(self, name: str) -> None:
        super().__init__(
            ErrorCode.CONTAINER_ALREADY_EXISTS,
            "Container already exists",
            {"name": name},
        )


class ProtectedContainerDeletion(LocalSeekError):
    def __init__(self, name: str) -> None:
        super().__init__(
            ErrorCode.CONTAINER_PROTECTED,
            "Cannot delete Default container",
            {"name": name},
        )


class UnknownContainer(LocalSeekError):
    def __init__(self, name: str) -> None:
        super().__init__(
            ErrorCode.CONTAINER_NOT_FOUND,
            "Container does not exist",
            {"name": name},
        )


class ModelNotReady(LocalSeekError):
    """Embedding model is still loading. The user may simply retry."""

    def __init__(self) -> None:
        super().__init__(
            ErrorCode.MODEL_NOT_READY,
            "AI model is loading... Please wait a moment.",
        )


class ModelLoadError(LocalSeekError):
    """Embedding model failed to initialize."""

    def __init__(self, cause: str) -> None:
        super().__init__(
            ErrorCode.MODEL_LOAD_FAILED,
            f"Model failed to load: {cause}",
            {"cause": cause},
        )


class EmbeddingError(LocalSeekError):
    """Encoding failed or returned no vector."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EMBEDDING_FAILED, message, details)


class StorageError(LocalSeekError):
    """Table create/upsert/search/drop failures."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.STORAGE_FAILED, message, details)


class IndexingError(LocalSeekError):
    """Directory or file could not be read for indexing."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INDEXING_FAILED, message, details)


class NoFoldersToReindex(LocalSeekError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.NO_FOLDERS_TO_REINDEX, "No folders to reindex")
