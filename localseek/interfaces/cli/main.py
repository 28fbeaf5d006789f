"""
CLI Main - Typer-based command-line interface.

Usage:
    localseek create Notes --description "personal notes"
    localseek use Notes
    localseek index ~/notes
    localseek search "how to implement search"
    localseek serve
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from localseek.config import LocalSeekError, get_settings
from localseek.domains.indexing import IndexingProgress, ProgressEvent
from localseek.domains.orchestration import AppContext, Workspace

T = TypeVar("T")

app = typer.Typer(
    name="localseek",
    help="LocalSeek - Local hybrid document search",
    add_completion=False,
)
console = Console()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """LocalSeek - Local hybrid document search."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


def _run(operation: Callable[[Workspace], Awaitable[T]], models: str | None = None) -> T:
    """
    Run one workspace operation in a fresh context.

    ``models`` is ``"embedder"`` to load only the embedding model or
    ``"all"`` to also load rerankers. Errors print their message and exit 1.
    """

    async def runner() -> T:
        context = await AppContext.create()
        try:
            if models == "all":
                await context.load_models()
            elif models == "embedder":
                await context.load_embedder()
            return await operation(Workspace(context))
        finally:
            await context.close()

    try:
        return asyncio.run(runner())
    except LocalSeekError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)


# --- Containers ---


@app.command()
def containers() -> None:
    """List containers (active one marked)."""

    async def list_all(workspace: Workspace):
        return await workspace.list_containers()

    items, active = _run(list_all)

    table = Table(title="Containers")
    table.add_column("", style="green")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Folders", justify="right")

    for item in items:
        table.add_row(
            "*" if item.name == active else "",
            item.name,
            item.description,
            str(len(item.indexed_paths)),
        )

    console.print(table)


@app.command()
def create(
    name: str = typer.Argument(..., help="Container name"),
    description: str = typer.Option("", "--description", "-d", help="Description"),
) -> None:
    """Create an empty container."""
    _run(lambda workspace: workspace.create_container(name, description))
    console.print(f"[green]Created container:[/green] {name}")


@app.command()
def delete(
    name: str = typer.Argument(..., help="Container name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a container and its index."""
    if not yes:
        typer.confirm(f"Delete container {name!r} and its index?", abort=True)

    _run(lambda workspace: workspace.delete_container(name))
    console.print(f"[green]Deleted container:[/green] {name}")


@app.command()
def use(name: str = typer.Argument(..., help="Container name")) -> None:
    """Make a container the active one."""
    _run(lambda workspace: workspace.set_active_container(name))
    console.print(f"[green]Active container:[/green] {name}")


# --- Search ---


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(10, "--limit", "-n", help="Number of results to show"),
) -> None:
    """Search the active container."""
    with console.status("Loading models and searching..."):
        results = _run(lambda workspace: workspace.search(query), models="all")

    if not results:
        console.print("[yellow]No results[/yellow]")
        return

    table = Table(title=f"Results for: {query}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Path", style="cyan")
    table.add_column("Snippet")

    for i, result in enumerate(results[:limit], 1):
        snippet = " ".join(result.snippet.split())
        table.add_row(str(i), f"{result.score:.2f}", result.path, snippet[:120])

    console.print(table)


# --- Indexing ---


async def _follow(queue: asyncio.Queue[ProgressEvent], progress: Progress, task_id) -> None:
    """Mirror progress notifications onto a Rich progress bar."""
    while True:
        event = await queue.get()
        if isinstance(event, IndexingProgress):
            progress.update(
                task_id,
                total=event.total,
                completed=event.current,
                description=Path(event.path).name,
            )


async def _with_progress(
    workspace: Workspace,
    operation: Callable[[], Awaitable[str]],
) -> str:
    """Run an indexing operation while rendering its notifications."""
    queue = workspace.events.subscribe()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("Indexing...", total=None)
        follower = asyncio.create_task(_follow(queue, progress, task_id))
        try:
            return await operation()
        finally:
            follower.cancel()
            workspace.events.unsubscribe(queue)


@app.command()
def index(directory: Path = typer.Argument(..., help="Folder to index")) -> None:
    """Index a folder into the active container."""
    message = _run(
        lambda workspace: _with_progress(
            workspace, lambda: workspace.index_folder(str(directory))
        ),
        models="embedder",
    )
    console.print(f"\n[green]{message}[/green]")


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Drop the active container's index (its folder list is kept)."""
    if not yes:
        typer.confirm("Drop the index of the active container?", abort=True)

    _run(lambda workspace: workspace.reset_index())
    console.print("[green]Index reset[/green]")


@app.command()
def reindex() -> None:
    """Re-index every folder recorded on the active container."""
    message = _run(
        lambda workspace: _with_progress(workspace, workspace.reindex_all),
        models="embedder",
    )
    console.print(f"\n[green]{message}[/green]")


# --- Server ---


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    root_logger = logging.getLogger()
    root_logger.setLevel(min(root_logger.level, logging.INFO))

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting LocalSeek API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "localseek.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from localseek import __version__

    console.print(f"LocalSeek v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
