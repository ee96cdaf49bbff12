"""``forgecache cache-list`` — table of archives in the local cache."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from forgecache.cli._common import EXIT_CONFIG_ERROR, console, err_console, load_settings
from forgecache.core.local_store import LocalCacheStore


def cache_list_cmd(
    cache_dir: Path = typer.Option(
        None, "--cache-dir", "-c", help="Cache root (overrides FORGECACHE_CACHE_DIR)."
    ),
) -> None:
    """List every cached artifact archive."""
    settings = load_settings()
    root = cache_dir or settings.cache_dir
    if root is None:
        err_console.print(
            "[bold red]Configuration error:[/bold red] FORGECACHE_CACHE_DIR is not set"
        )
        raise typer.Exit(code=EXIT_CONFIG_ERROR)

    store = LocalCacheStore(root, extension=settings.archive_extension)
    entries = store.list_entries()
    if not entries:
        console.print(f"[dim]No cached artifacts in {root}.[/dim]")
        return

    table = Table(title=f"Local artifact cache ({root})")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Size", justify="right")
    table.add_column("Path", style="dim")
    for entry in entries:
        table.add_row(
            entry.key.name,
            entry.key.version.dotted,
            f"{entry.path.stat().st_size:,}",
            str(entry.path),
        )
    console.print(table)
