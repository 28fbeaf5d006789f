"""
API Dependencies - Dependency injection for FastAPI routes.

The ``AppContext`` is built once by the lifespan handler and kept on
``app.state``; routes receive a ``Workspace`` over it.
"""

from __future__ import annotations

from fastapi import FastAPI, Request

from localseek.config import ErrorCode, LocalSeekError, get_settings
from localseek.domains.orchestration import AppContext, Workspace


def get_workspace(request: Request) -> Workspace:
    """Get the application workspace (available after startup)."""
    workspace = getattr(request.app.state, "workspace", None)
    if workspace is None:
        raise LocalSeekError(ErrorCode.INTERNAL_ERROR, "Services not initialized")
    return workspace


async def init_services(app: FastAPI) -> None:
    """
    Initialize services on startup.

    Opens config and storage, then starts model loading in the background so
    container routes answer immediately and search reports the loading state.
    This should be called from the FastAPI lifespan handler.
    """
    context = await AppContext.create(get_settings())
    context.start_models()

    app.state.context = context
    app.state.workspace = Workspace(context)


async def cleanup_services(app: FastAPI) -> None:
    """Cleanup services on shutdown."""
    context: AppContext | None = getattr(app.state, "context", None)
    if context is not None:
        await context.close()
    app.state.context = None
    app.state.workspace = None
