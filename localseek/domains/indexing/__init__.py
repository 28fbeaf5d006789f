"""
Indexing Domain - Turn folders of files into searchable chunk tables.

This domain handles:
- Per-extension chunk size policy
- Structure-aware chunking with sliding-window fallback
- Directory walks with lazy table creation
- Progress notifications
"""

from .chunking import (
    DEFAULT_CHUNK_CONFIG,
    chunk_with_overlap,
    register_boundary,
    resolve_config,
    semantic_chunk,
    supported_extensions,
)
from .contracts import ChunkTableStore, PassageEmbedder, ProgressCallback
from .models import ChunkConfig, IndexingComplete, IndexingOptions, IndexingProgress, ProgressEvent
from .pipeline import discover_files, index_directory, reindex_paths, reset_index
from .progress import ProgressBroadcaster

__all__ = [
    # Chunking
    "ChunkConfig",
    "DEFAULT_CHUNK_CONFIG",
    "resolve_config",
    "semantic_chunk",
    "chunk_with_overlap",
    "register_boundary",
    "supported_extensions",
    # Pipeline
    "IndexingOptions",
    "discover_files",
    "index_directory",
    "reindex_paths",
    "reset_index",
    # Contracts
    "ChunkTableStore",
    "PassageEmbedder",
    "ProgressCallback",
    # Progress
    "IndexingProgress",
    "IndexingComplete",
    "ProgressEvent",
    "ProgressBroadcaster",
]
