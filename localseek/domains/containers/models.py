"""
Container Models - Data types for container domain.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ContainerListItem(BaseModel):
    """Container as listed to users."""

    name: str
    description: str = ""
    indexed_paths: list[str] = Field(default_factory=list)


class ContainerCreate(BaseModel):
    """Container creation request."""

    name: str = Field(..., min_length=1)
    description: str = ""


class ActiveContainer(BaseModel):
    """Active container selection request."""

    name: str = Field(..., min_length=1)
