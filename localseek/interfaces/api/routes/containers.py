"""
Container Routes - Create, list, delete and activate containers.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from localseek.domains.containers import ActiveContainer, ContainerCreate, ContainerListItem
from localseek.domains.orchestration import Workspace
from localseek.interfaces.api.deps import get_workspace

router = APIRouter()


class ContainerListResponse(BaseModel):
    """All containers and the active one."""

    containers: list[ContainerListItem]
    active: str


class ContainerActionResponse(BaseModel):
    status: str
    name: str


@router.get("", response_model=ContainerListResponse)
async def list_containers(workspace: Workspace = Depends(get_workspace)):
    """List containers sorted by name."""
    containers, active = await workspace.list_containers()
    return ContainerListResponse(containers=containers, active=active)


@router.post(
    "",
    response_model=ContainerActionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_container(
    request: ContainerCreate,
    workspace: Workspace = Depends(get_workspace),
):
    """
    Create an empty container.

    Returns 409 when the name is taken.
    """
    await workspace.create_container(request.name, request.description)
    return ContainerActionResponse(status="created", name=request.name)


@router.delete("/{name}", response_model=ContainerActionResponse)
async def delete_container(name: str, workspace: Workspace = Depends(get_workspace)):
    """
    Delete a container and its indexed data.

    The "Default" container is protected (403).
    """
    await workspace.delete_container(name)
    return ContainerActionResponse(status="deleted", name=name)


@router.put("/active", response_model=ContainerActionResponse)
async def set_active_container(
    request: ActiveContainer,
    workspace: Workspace = Depends(get_workspace),
):
    """Switch the container that search and indexing operate on."""
    await workspace.set_active_container(request.name)
    return ContainerActionResponse(status="active", name=request.name)
