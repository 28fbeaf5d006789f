"""
Result Fusion - Merge, fuse and score retrieval candidates.

Features:
- First-seen merge of lexical variant results
- Reciprocal Rank Fusion (RRF) with the vector channel dominant
- Final score normalization to [0, 1] per retrieval path
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from .models import SearchResult

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_RRF_K", "hybrid_merge", "merge_text_results", "score_results"]

DEFAULT_RRF_K = 60


def merge_text_results(
    variant_results: Sequence[list[SearchResult] | BaseException],
) -> list[SearchResult]:
    """
    Flatten per-variant lexical results, keeping the first hit per path.

    Failed variants (exceptions from ``asyncio.gather``) contribute nothing.
    """
    merged: list[SearchResult] = []
    seen: set[str] = set()

    for position, results in enumerate(variant_results):
        if isinstance(results, BaseException):
            logger.warning("Lexical variant %d failed: %s", position, results)
            continue
        for result in results:
            if result.path not in seen:
                seen.add(result.path)
                merged.append(result)

    return merged


def hybrid_merge(
    vector_results: Sequence[SearchResult],
    text_results: Sequence[SearchResult],
    limit: int = 50,
    k: int = DEFAULT_RRF_K,
) -> list[SearchResult]:
    """
    Fuse two ranked lists with Reciprocal Rank Fusion.

    ``score = sum(1 / (k + rank))`` over the channels a path appears in.
    Vector paths are always kept (up to ``limit``); lexical-only paths fill
    the remaining room. Output is ordered by fused score, ties broken by
    vector rank and then by first appearance.

    Args:
        vector_results: Vector channel, best first
        text_results: Lexical channel, best first
        limit: Maximum fused results
        k: RRF constant

    Returns:
        Fused results carrying the RRF score
    """
    if limit < 1:
        return []

    vector_kept = list(vector_results[:limit])
    vector_rank: dict[str, int] = {}
    for rank, result in enumerate(vector_kept, 1):
        vector_rank.setdefault(result.path, rank)
    text_rank: dict[str, int] = {}
    for rank, result in enumerate(text_results, 1):
        text_rank.setdefault(result.path, rank)

    def fused(path: str) -> float:
        score = 0.0
        if path in vector_rank:
            score += 1.0 / (k + vector_rank[path])
        if path in text_rank:
            score += 1.0 / (k + text_rank[path])
        return score

    candidates: list[SearchResult] = list(vector_kept)
    seen = set(vector_rank)
    room = limit - len(vector_kept)
    for result in text_results:
        if room <= 0:
            break
        if result.path in seen:
            continue
        seen.add(result.path)
        candidates.append(result)
        room -= 1

    order: dict[str, int] = {}
    for position, result in enumerate(candidates):
        order.setdefault(result.path, position)
    candidates.sort(
        key=lambda r: (
            -fused(r.path),
            vector_rank.get(r.path, math.inf),
            order[r.path],
        )
    )

    return [r.model_copy(update={"score": fused(r.path)}) for r in candidates]


def score_results(
    results: Sequence[SearchResult],
    used_reranker: bool,
    used_hybrid: bool,
    limit: int = 20,
    k: int = DEFAULT_RRF_K,
) -> list[SearchResult]:
    """
    Map raw scores to [0, 1], sort descending and keep the top ``limit``.

    - reranked: relevance probability; when any score is a raw logit
      (outside [0, 1]) the sigmoid is applied to every score
    - hybrid: RRF score over its two-channel maximum ``2 / (k + 1)``
    - vector only: cosine similarity clipped to [0, 1]
    """
    if used_reranker:
        if all(0.0 <= r.score <= 1.0 for r in results):
            normalize = _clip
        else:
            normalize = _sigmoid
    elif used_hybrid:
        ceiling = 2.0 / (k + 1)

        def normalize(score: float) -> float:
            return _clip(score / ceiling)
    else:
        normalize = _clip

    scored = [r.model_copy(update={"score": normalize(r.score)}) for r in results]
    scored.sort(key=lambda r: r.score, reverse=True)
    return scored[:limit]


def _clip(score: float) -> float:
    return min(1.0, max(0.0, score))


def _sigmoid(score: float) -> float:
    if score >= 0:
        return 1.0 / (1.0 + math.exp(-score))
    z = math.exp(score)
    return z / (1.0 + z)
