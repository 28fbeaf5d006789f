"""
Search Domain - Hybrid semantic and lexical retrieval.

This domain handles:
- Query expansion (lowercase and stop-word-filtered variants)
- Vector similarity search
- Keyword search across query variants
- Reciprocal Rank Fusion
- Cross-encoder reranking and score normalization
"""

from .contracts import QueryEmbedder, SearchBackend
from .fusion import DEFAULT_RRF_K, hybrid_merge, merge_text_results, score_results
from .hybrid_search import HybridSearchEngine
from .models import SearchQuery, SearchResult
from .query_expansion import STOP_WORDS, expand_query

__all__ = [
    "SearchBackend",
    "QueryEmbedder",
    "SearchQuery",
    "SearchResult",
    "HybridSearchEngine",
    "expand_query",
    "STOP_WORDS",
    "hybrid_merge",
    "merge_text_results",
    "score_results",
    "DEFAULT_RRF_K",
]
