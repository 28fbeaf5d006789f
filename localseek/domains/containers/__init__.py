"""
Containers Domain - Named, isolated document collections.

This domain handles:
- Container name to table identifier mapping
- Create, delete and activate operations
- Indexed folder bookkeeping per container
"""

from .manager import ContainerManager
from .models import ActiveContainer, ContainerCreate, ContainerListItem
from .naming import table_name

__all__ = [
    "ContainerManager",
    "ContainerListItem",
    "ContainerCreate",
    "ActiveContainer",
    "table_name",
]
