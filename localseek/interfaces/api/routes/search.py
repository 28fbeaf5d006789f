"""
Search Routes - Hybrid search over the active container.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from localseek.domains.orchestration import Workspace
from localseek.domains.search import SearchQuery, SearchResult
from localseek.interfaces.api.deps import get_workspace

router = APIRouter()


class SearchResponse(BaseModel):
    """Search response."""

    query: str
    results: list[SearchResult]
    total: int


@router.post("", response_model=SearchResponse)
async def search(
    request: SearchQuery,
    workspace: Workspace = Depends(get_workspace),
):
    """
    Search the active container.

    - **query**: Natural-language or keyword query

    Scores are in [0, 1]. Returns 503 while the embedding model is loading.
    """
    results = await workspace.search(request.query)
    return SearchResponse(query=request.query, results=results, total=len(results))
