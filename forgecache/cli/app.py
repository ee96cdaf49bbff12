"""Main Typer application — imports and registers all CLI commands.

Entry point: ``forgecache`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from forgecache.cli.commands.cache_list import cache_list_cmd
from forgecache.cli.commands.key import key_cmd
from forgecache.cli.commands.resolve import resolve_cmd
from forgecache.cli.commands.status import status_cmd
from forgecache.cli.commands.version_cmd import version_cmd

app = typer.Typer(
    name="forgecache",
    help="forgecache: reuse pre-built components whose source revision is unchanged.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(name="version", help="Derive the four-part version of a source tree.")(version_cmd)
app.command(name="key", help="Show the remote key for a component.")(key_cmd)
app.command(name="resolve", help="Resolve one component against the artifact cache.")(resolve_cmd)
app.command(name="cache-list", help="List the local artifact cache.")(cache_list_cmd)
app.command(name="status", help="Show configuration and tool availability.")(status_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
