"""
Orchestration Domain - Application wiring and the operation surface.

This domain handles:
- Startup of shared handles (config, storage, models, progress events)
- Background model loading
- The operations exposed by the API and CLI
"""

from .context import AppContext
from .workspace import Workspace

__all__ = [
    "AppContext",
    "Workspace",
]
