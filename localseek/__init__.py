"""
LocalSeek - Local hybrid semantic and lexical document search.

Example:
    >>> from localseek.domains.orchestration import AppContext, Workspace
    >>> context = await AppContext.create()
    >>> workspace = Workspace(context)
    >>> await workspace.index_folder("~/notes")
    >>> results = await workspace.search("how to implement search")
"""

__version__ = "2.0.0"
__all__ = ["__version__"]
