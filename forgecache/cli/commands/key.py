"""``forgecache key NAME PATH`` — print the remote key for a component."""

from __future__ import annotations

from pathlib import Path

import typer

from forgecache.cli._common import EXIT_CONFIG_ERROR, console, err_console, load_settings
from forgecache.core.remote_client import remote_key
from forgecache.core.vcs import VersionUnavailable
from forgecache.core.version_deriver import VersionDeriver
from forgecache.models.artifacts import ArtifactKey


def key_cmd(
    name: str = typer.Argument(..., help="Component name."),
    path: Path = typer.Argument(Path("."), help="Component source tree."),
) -> None:
    """Show where the artifact for the current revision of NAME lives."""
    settings = load_settings()
    if not settings.bucket:
        err_console.print("[bold red]Configuration error:[/bold red] FORGECACHE_BUCKET is not set")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    try:
        version = VersionDeriver().derive(path)
    except VersionUnavailable as exc:
        err_console.print(f"[bold red]Version unavailable:[/bold red] {exc}")
        raise typer.Exit(code=1)
    key = ArtifactKey(name=name, version=version)
    console.print(remote_key(settings.bucket, key, settings.archive_extension), highlight=False)
