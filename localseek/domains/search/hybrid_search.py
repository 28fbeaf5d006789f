"""
Hybrid Search Engine - Combines vector and keyword search with RRF.

Features:
- Vector similarity search over the active table
- Multi-variant full-text search (query expansion)
- Reciprocal Rank Fusion (RRF)
- Optional cross-encoder reranking from a bounded pool
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .fusion import DEFAULT_RRF_K, hybrid_merge, merge_text_results, score_results
from .models import SearchResult
from .query_expansion import expand_query

if TYPE_CHECKING:
    from localseek.adapters.embedding import RerankerPool

    from .contracts import QueryEmbedder, SearchBackend

logger = logging.getLogger(__name__)

__all__ = ["HybridSearchEngine"]


class HybridSearchEngine:
    """
    Hybrid search combining vector and keyword approaches.

    Example:
        >>> engine = HybridSearchEngine(chunk_store, embedding_service, reranker_pool)
        >>> results = await engine.search("how to implement search", "c_Default")
    """

    def __init__(
        self,
        store: SearchBackend,
        embedder: QueryEmbedder,
        reranker_pool: RerankerPool | None = None,
        vector_limit: int = 50,
        text_limit: int = 30,
        fusion_limit: int = 50,
        rerank_limit: int = 15,
        result_limit: int = 20,
        rrf_k: int = DEFAULT_RRF_K,
    ) -> None:
        """
        Initialize hybrid search engine.

        Args:
            store: Backend answering vector and full-text queries
            embedder: Query embedding model
            reranker_pool: Cross-encoders; None disables reranking
            vector_limit: Vector candidates per query
            text_limit: Full-text candidates per query variant
            fusion_limit: Maximum fused candidates
            rerank_limit: Candidates passed to the reranker
            result_limit: Results returned
            rrf_k: RRF constant (default 60)
        """
        self._store = store
        self._embedder = embedder
        self._reranker_pool = reranker_pool
        self._vector_limit = vector_limit
        self._text_limit = text_limit
        self._fusion_limit = fusion_limit
        self._rerank_limit = rerank_limit
        self._result_limit = result_limit
        self._rrf_k = rrf_k

    async def search(self, query: str, table: str) -> list[SearchResult]:
        """
        Execute hybrid search.

        Args:
            query: Natural-language query
            table: Table of the active container

        Returns:
            Results with scores in [0, 1], best first

        Raises:
            ModelNotReady: Embedding model still loading
            ModelLoadError: Embedding model failed to load
            StorageError: Vector search failed
        """
        query_vector = await self._embedder.embed_query(query)
        variants = expand_query(query)

        vector_results, *variant_results = await asyncio.gather(
            self._store.vector_search(table, query_vector, self._vector_limit),
            *(
                self._text_search_safe(table, variant)
                for variant in variants
            ),
        )
        text_results = merge_text_results(variant_results)

        used_hybrid = bool(text_results)
        if used_hybrid:
            merged = hybrid_merge(
                vector_results, text_results, limit=self._fusion_limit, k=self._rrf_k
            )
        else:
            merged = vector_results

        candidates = merged[: self._rerank_limit]
        final, used_reranker = await self._rerank(query, candidates)

        results = score_results(
            final, used_reranker, used_hybrid, limit=self._result_limit, k=self._rrf_k
        )

        logger.info(
            "Hybrid search: query='%s' -> %d results (vector=%d, keyword=%d, reranked=%s)",
            query[:50],
            len(results),
            len(vector_results),
            len(text_results),
            used_reranker,
        )

        return results

    async def _text_search_safe(
        self,
        table: str,
        variant: str,
    ) -> list[SearchResult] | Exception:
        """Full-text search for one variant; failures are returned, not raised."""
        try:
            return await self._store.text_search(table, variant, self._text_limit)
        except Exception as e:
            return e

    async def _rerank(
        self,
        query: str,
        candidates: list[SearchResult],
    ) -> tuple[list[SearchResult], bool]:
        """
        Rerank with an idle pool instance.

        Returns the input unchanged (and False) when the pool is absent,
        busy, or the reranker raised.
        """
        if self._reranker_pool is None or not candidates:
            return candidates, False

        try:
            async with self._reranker_pool.checkout() as lease:
                if lease is None:
                    logger.debug("No idle reranker, skipping rerank")
                    return candidates, False
                reranked = await lease.rerank(query, candidates)
        except Exception as e:
            logger.warning("Reranking failed, reranker retired: %s", e)
            return candidates, False

        return reranked, True
