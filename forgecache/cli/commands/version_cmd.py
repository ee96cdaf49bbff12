"""``forgecache version PATH`` — print the version descriptor for a source tree."""

from __future__ import annotations

from pathlib import Path

import typer

from forgecache.cli._common import console, err_console, load_settings
from forgecache.core.vcs import VersionUnavailable
from forgecache.core.version_deriver import VersionDeriver


def version_cmd(
    path: Path = typer.Argument(
        Path("."),
        help="Source tree under version control.",
    ),
    placeholder: bool = typer.Option(
        False,
        "--placeholder",
        help="Print 0.0.0.0 instead of failing when there is no revision.",
    ),
) -> None:
    """Derive the four-part version from the revision checked out at PATH."""
    load_settings()
    deriver = VersionDeriver()
    if placeholder:
        console.print(deriver.derive_or_placeholder(path).dotted, highlight=False)
        return
    try:
        descriptor = deriver.derive(path)
    except VersionUnavailable as exc:
        err_console.print(f"[bold red]Version unavailable:[/bold red] {exc}")
        raise typer.Exit(code=1)
    console.print(descriptor.dotted, highlight=False)
