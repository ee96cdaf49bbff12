"""``forgecache status`` — show configuration and tool availability."""

from __future__ import annotations

import shutil

from rich.panel import Panel
from rich.table import Table

from forgecache.cli._common import console, load_settings


def status_cmd() -> None:
    """Report the effective configuration and whether git and the store client are on PATH."""
    settings = load_settings()

    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Setting", min_width=20)
    table.add_column("Value")

    def _show(value: object) -> str:
        return str(value) if value not in (None, "", []) else "[yellow]not set[/yellow]"

    table.add_row("bucket", _show(settings.bucket))
    table.add_row("package_regex", _show(settings.package_regex))
    table.add_row("cache_dir", _show(settings.cache_dir))
    table.add_row("install_prefix", _show(settings.install_prefix))
    table.add_row("archive_extension", settings.archive_extension)
    table.add_row("force_from_source", _show(", ".join(settings.force_from_source)))
    table.add_row("require_prebuilt", _show(", ".join(settings.require_prebuilt)))

    for tool in ("git", settings.remote_tool):
        location = shutil.which(tool)
        found = f"[green]{location}[/green]" if location else "[yellow]not found on PATH[/yellow]"
        table.add_row(f"{tool} binary", found)

    console.print(Panel(table, title="[bold]forgecache status[/bold]", border_style="cyan"))
