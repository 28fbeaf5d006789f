"""
Embedding Adapter - sentence-transformers models and the reranker pool.
"""

from .pool import RerankerLease, RerankerPool
from .service import (
    DEFAULT_RERANKER_MODEL,
    EMBEDDING_MODELS,
    EmbeddingService,
    ModelState,
    load_reranker,
    rerank_results,
    resolve_model_name,
)

__all__ = [
    "EMBEDDING_MODELS",
    "DEFAULT_RERANKER_MODEL",
    "EmbeddingService",
    "ModelState",
    "resolve_model_name",
    "load_reranker",
    "rerank_results",
    "RerankerPool",
    "RerankerLease",
]
