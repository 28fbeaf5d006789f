"""
Indexing Routes - Index folders and stream progress.

Progress of any running index or reindex is published on
``GET /api/index/events`` as server-sent events:

    event: progress
    data: {"current": 3, "total": 10, "path": "/docs/a.md", "event": "progress"}

    event: complete
    data: {"message": "10 files indexed", "event": "complete"}
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from localseek.domains.indexing import ProgressBroadcaster, ProgressEvent
from localseek.domains.orchestration import Workspace
from localseek.interfaces.api.deps import get_workspace

logger = logging.getLogger(__name__)

router = APIRouter()

KEEPALIVE_SECONDS = 15.0


class IndexRequest(BaseModel):
    """Folder indexing request body."""

    directory: str = Field(..., min_length=1, description="Folder to index")


class MessageResponse(BaseModel):
    message: str


class StatusResponse(BaseModel):
    status: str


@router.post("", response_model=MessageResponse)
async def index_folder(
    request: IndexRequest,
    workspace: Workspace = Depends(get_workspace),
):
    """Record a folder on the active container and index it."""
    message = await workspace.index_folder(request.directory)
    return MessageResponse(message=message)


@router.post("/reset", response_model=StatusResponse)
async def reset_index(workspace: Workspace = Depends(get_workspace)):
    """Drop the active container's index. Its folder list is kept."""
    await workspace.reset_index()
    return StatusResponse(status="reset")


@router.post("/reindex", response_model=MessageResponse)
async def reindex_all(workspace: Workspace = Depends(get_workspace)):
    """Re-index every folder recorded on the active container."""
    message = await workspace.reindex_all()
    return MessageResponse(message=message)


@router.get("/events")
async def index_events(
    request: Request,
    workspace: Workspace = Depends(get_workspace),
) -> StreamingResponse:
    """Stream indexing notifications until the client disconnects."""
    events = workspace.events
    queue = events.subscribe()
    return StreamingResponse(
        event_stream(events, queue, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


def format_event(event: ProgressEvent) -> str:
    """Format as SSE: "event: {type}\\ndata: {json}\\n\\n"."""
    return f"event: {event.event}\ndata: {event.model_dump_json()}\n\n"


async def event_stream(
    events: ProgressBroadcaster,
    queue: asyncio.Queue[ProgressEvent],
    request: Request,
    keepalive: float = KEEPALIVE_SECONDS,
) -> AsyncGenerator[str, None]:
    """Yield queued events, with comment keep-alives while idle."""
    try:
        while not await request.is_disconnected():
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield format_event(event)
    finally:
        events.unsubscribe(queue)
        logger.debug("Event stream closed (%d subscribers left)", events.subscriber_count)
