"""
Indexing Models - Data types for indexing domain.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from localseek.config import Settings


class ChunkConfig(BaseModel):
    """Byte-size policy for one file category."""

    max_bytes: int = Field(..., ge=1)
    overlap_bytes: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _overlap_below_max(self) -> ChunkConfig:
        if self.overlap_bytes >= self.max_bytes:
            raise ValueError("overlap_bytes must be smaller than max_bytes")
        return self


class IndexingOptions(BaseModel):
    """File inclusion policy for a directory walk."""

    max_file_bytes: int = 2_000_000
    skip_dirs: frozenset[str] = frozenset(
        {"node_modules", "target", "__pycache__", "dist", "build", "venv", ".venv", ".git"}
    )
    include_hidden: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings) -> IndexingOptions:
        return cls(
            max_file_bytes=settings.index_max_file_bytes,
            skip_dirs=frozenset(settings.index_skip_dirs),
        )


class IndexingProgress(BaseModel):
    """Emitted after each file of a directory walk."""

    event: Literal["progress"] = "progress"
    current: int
    total: int
    path: str


class IndexingComplete(BaseModel):
    """Emitted once an index or reindex operation finishes."""

    event: Literal["complete"] = "complete"
    message: str


ProgressEvent = IndexingProgress | IndexingComplete
