"""
Embedding Service - Bi-encoder embeddings and cross-encoder reranking.

Features:
- Model selector to Hugging Face id mapping
- Background-friendly loading with loading/ready/failed state
- E5-style "query: " / "passage: " prefixes
- Serialized model access, encoding off the event loop
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from enum import Enum
from pathlib import Path

import numpy as np
from sentence_transformers import CrossEncoder, SentenceTransformer

from localseek.config.errors import EmbeddingError, ModelLoadError, ModelNotReady
from localseek.config.store import DEFAULT_EMBEDDING_MODEL
from localseek.domains.search.models import SearchResult

logger = logging.getLogger(__name__)

__all__ = [
    "EMBEDDING_MODELS",
    "DEFAULT_RERANKER_MODEL",
    "EmbeddingService",
    "ModelState",
    "load_reranker",
    "rerank_results",
    "resolve_model_name",
]

EMBEDDING_MODELS: dict[str, str] = {
    "AllMiniLML6V2": "sentence-transformers/all-MiniLM-L6-v2",
    "MultilingualE5Small": "intfloat/multilingual-e5-small",
    "MultilingualE5Base": "intfloat/multilingual-e5-base",
}

DEFAULT_RERANKER_MODEL = "cross-encoder/mmarco-mMiniLMv2-L12-H384-v1"

QUERY_PREFIX = "query: "
PASSAGE_PREFIX = "passage: "
DIMENSION_SAMPLE = "dimension sample"


def resolve_model_name(selector: str) -> str:
    """Map a persisted model selector to its model id; unknown selectors use the default."""
    name = EMBEDDING_MODELS.get(selector)
    if name is None:
        logger.warning("Unknown embedding model %r, using %s", selector, DEFAULT_EMBEDDING_MODEL)
        name = EMBEDDING_MODELS[DEFAULT_EMBEDDING_MODEL]
    return name


class ModelState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class EmbeddingService:
    """
    Embedding model wrapper shared by indexing and search.

    The model is loaded once per process with ``load()``, usually from a
    background task. Until then every call raises ``ModelNotReady``; after a
    failed load every call raises ``ModelLoadError``.

    Example:
        >>> service = EmbeddingService("MultilingualE5Base", cache_dir="data/models")
        >>> await service.load()
        >>> vectors = await service.embed_passages(["first chunk", "second chunk"])
        >>> query = await service.embed_query("how to implement search")
    """

    def __init__(
        self,
        selector: str = DEFAULT_EMBEDDING_MODEL,
        cache_dir: str | Path | None = None,
        batch_size: int = 32,
        model: SentenceTransformer | None = None,
    ) -> None:
        """
        Initialize embedding service.

        Args:
            selector: Persisted model selector (e.g. "MultilingualE5Base")
            cache_dir: Directory for downloaded model files
            batch_size: Encoding batch size
            model: Preloaded model (skips ``load()``)
        """
        self.model_name = resolve_model_name(selector)
        self._cache_dir = Path(cache_dir) if cache_dir else None
        self._batch_size = batch_size
        self._model = model
        self._state = ModelState.READY if model is not None else ModelState.LOADING
        self._init_error: str | None = None
        self._dimension: int | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def init_error(self) -> str | None:
        return self._init_error

    async def load(self) -> None:
        """Load the model in a worker thread; failures are recorded, not raised."""
        if self._state is not ModelState.LOADING:
            return

        logger.info("Loading embedding model %s", self.model_name)
        try:
            model = await asyncio.to_thread(
                SentenceTransformer,
                self.model_name,
                cache_folder=str(self._cache_dir) if self._cache_dir else None,
            )
        except Exception as e:
            self._init_error = str(e)
            self._state = ModelState.FAILED
            logger.exception("Failed to load embedding model %s", self.model_name)
            return

        self._model = model
        self._state = ModelState.READY
        logger.info("Embedding model ready: %s", self.model_name)

    def _require_model(self) -> SentenceTransformer:
        if self._state is ModelState.FAILED:
            raise ModelLoadError(self._init_error or "unknown error")
        if self._model is None:
            raise ModelNotReady()
        return self._model

    async def _encode(self, texts: list[str]) -> np.ndarray:
        model = self._require_model()

        async with self._lock:
            try:
                vectors = await asyncio.to_thread(
                    model.encode,
                    texts,
                    batch_size=self._batch_size,
                    normalize_embeddings=True,
                    convert_to_numpy=True,
                    show_progress_bar=False,
                )
            except Exception as e:
                raise EmbeddingError(f"Embedding failed: {e}") from e

        vectors = np.asarray(vectors, dtype="float32")
        if vectors.ndim != 2 or vectors.shape[0] == 0 or vectors.shape[1] == 0:
            raise EmbeddingError("Empty embedding result")
        return vectors

    async def embed_passages(self, texts: Sequence[str]) -> np.ndarray:
        """Encode indexed content as an ``(n, dimension)`` float32 matrix."""
        return await self._encode([PASSAGE_PREFIX + text for text in texts])

    async def embed_query(self, query: str) -> np.ndarray:
        """Encode a search query as a 1-D float32 vector."""
        vectors = await self._encode([QUERY_PREFIX + query])
        return vectors[0]

    async def detect_dimension(self) -> int:
        """Vector length produced by the loaded model."""
        if self._dimension is None:
            vectors = await self._encode([DIMENSION_SAMPLE])
            self._dimension = int(vectors.shape[1])
        return self._dimension


def load_reranker(
    model_name: str = DEFAULT_RERANKER_MODEL,
    cache_dir: str | Path | None = None,
) -> CrossEncoder:
    """Load a cross-encoder (blocking; run it in a worker thread)."""
    logger.info("Loading reranker %s", model_name)
    return CrossEncoder(model_name, cache_folder=str(cache_dir) if cache_dir else None)


def rerank_results(
    reranker: CrossEncoder,
    query: str,
    candidates: Sequence[SearchResult],
) -> list[SearchResult]:
    """
    Re-score ``candidates`` against ``query`` with a cross-encoder.

    Returns the candidates sorted by reranker score (descending) with that
    score substituted. An empty input returns ``[]`` without touching the
    model. Blocking; run it in a worker thread.
    """
    if not candidates:
        return []

    ranked = reranker.rank(
        query,
        [candidate.snippet for candidate in candidates],
        return_documents=False,
        show_progress_bar=False,
    )
    return [
        candidates[item["corpus_id"]].model_copy(update={"score": float(item["score"])})
        for item in ranked
    ]
