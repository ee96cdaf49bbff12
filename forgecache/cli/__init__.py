"""forgecache CLI — Typer-based command-line interface.

Provides the ``forgecache`` command with subcommands for deriving versions,
rendering remote keys, resolving a component against the artifact cache,
listing the local cache and checking the environment.

All output uses Rich for formatted terminal display.
"""
