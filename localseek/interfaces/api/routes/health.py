"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from localseek import __version__
from localseek.domains.orchestration import Workspace
from localseek.interfaces.api.deps import get_workspace

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "localseek"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "LocalSeek API",
        "version": __version__,
        "description": "Local hybrid semantic and lexical document search",
        "docs": "/docs",
    }


@router.get("/api/status")
async def status(workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    """Model loading state and active container statistics."""
    return await workspace.status()
