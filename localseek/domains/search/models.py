"""
Search Models - Data types for search domain.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SearchQuery(BaseModel):
    """Search request."""

    query: str = Field(..., min_length=1)

    model_config = {"frozen": True}


class SearchResult(BaseModel):
    """
    Single retrieval candidate.

    ``path`` identifies the document and is the deduplication key across
    the vector and lexical channels.
    """

    path: str
    snippet: str
    score: float = 0.0

    model_config = {"frozen": True}
