"""
Adapters - External library integrations.

All storage and model calls are wrapped here to isolate domains from third-party changes.
"""

from .chunkstore import ChunkStore
from .embedding import EmbeddingService, RerankerPool, load_reranker, rerank_results
from .faiss import FAISSIndex
from .sqlite import ChunkRepository

__all__ = [
    # Storage
    "ChunkRepository",
    "FAISSIndex",
    "ChunkStore",
    # Models
    "EmbeddingService",
    "RerankerPool",
    "load_reranker",
    "rerank_results",
]
