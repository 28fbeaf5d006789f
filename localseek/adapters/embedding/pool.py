"""
Reranker Pool - Bounded set of cross-encoder instances.

Queries check an instance out for the duration of one rerank pass. When no
instance is idle the caller gets ``None`` and continues without reranking.
An instance whose pass raised is retired for the rest of the process.
An instance whose caller was cancelled mid-pass returns to the pool only
once its worker thread has finished.

All pool methods run on the event loop thread and never await while
touching pool state.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any

from localseek.domains.search.models import SearchResult

from .service import rerank_results

logger = logging.getLogger(__name__)

__all__ = ["RerankerLease", "RerankerPool"]


class RerankerLease:
    """Checked-out reranker; call ``retire()`` to keep it out of the pool."""

    def __init__(self, reranker: Any) -> None:
        self.reranker = reranker
        self.retired = False
        self.pending: asyncio.Future[list[SearchResult]] | None = None

    @property
    def busy(self) -> bool:
        """A worker thread is still using the instance."""
        return self.pending is not None and not self.pending.done()

    async def rerank(self, query: str, candidates: list[SearchResult]) -> list[SearchResult]:
        """
        Run ``rerank_results`` with this instance in a worker thread.

        Cancelling the caller does not stop the thread; ``pending`` tracks it.
        """
        self.pending = asyncio.ensure_future(
            asyncio.to_thread(rerank_results, self.reranker, query, candidates)
        )
        return await asyncio.shield(self.pending)

    def retire(self) -> None:
        self.retired = True


class RerankerPool:
    """
    Pool of rerankers with scoped checkout.

    Example:
        >>> pool = RerankerPool([reranker])
        >>> async with pool.checkout() as lease:
        ...     if lease is not None:
        ...         results = await lease.rerank(query, candidates)
    """

    def __init__(self, rerankers: Iterable[Any] = ()) -> None:
        self._idle: deque[Any] = deque(rerankers)
        self._size = len(self._idle)
        self._retired = 0

    def add(self, reranker: Any) -> None:
        """Add a freshly loaded instance."""
        self._idle.append(reranker)
        self._size += 1

    @property
    def available(self) -> int:
        """Idle instances right now."""
        return len(self._idle)

    @property
    def size(self) -> int:
        """Instances that are idle or checked out."""
        return self._size - self._retired

    @property
    def retired(self) -> int:
        return self._retired

    @asynccontextmanager
    async def checkout(self) -> AsyncIterator[RerankerLease | None]:
        """
        Borrow an idle reranker, or ``None`` if every instance is busy or gone.

        An exception raised inside the block retires the instance before
        propagating. On cancellation a still-running pass keeps the instance
        out of the pool until its thread finishes.
        """
        reranker = self._idle.popleft() if self._idle else None

        if reranker is None:
            yield None
            return

        lease = RerankerLease(reranker)
        try:
            yield lease
        except Exception:
            lease.retire()
            raise
        finally:
            if lease.retired:
                self._retire()
            elif lease.busy:
                lease.pending.add_done_callback(
                    lambda pending: self._release(reranker, pending)
                )
                logger.debug("Reranker held until its pass finishes")
            else:
                self._idle.append(reranker)

    def _release(self, reranker: Any, pending: asyncio.Future[Any]) -> None:
        if pending.cancelled() or pending.exception() is not None:
            self._retire()
        else:
            self._idle.append(reranker)

    def _retire(self) -> None:
        self._retired += 1
        logger.warning("Reranker retired (%d remaining)", self.size)
