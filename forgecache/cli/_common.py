"""Helpers shared by CLI commands: settings loading and logging setup."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from forgecache.config import CacheSettings
from forgecache.core.errors import ConfigurationError
from forgecache.models.config import ResolverConfig

console = Console()
err_console = Console(stderr=True)

# Exit code for configuration problems; 1 is reserved for policy violations.
EXIT_CONFIG_ERROR = 2


def configure_logging(level: str) -> None:
    """Route forgecache log records through Rich at *level*."""
    logger = logging.getLogger("forgecache")
    logger.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(
            RichHandler(console=err_console, show_path=False, show_time=False)
        )


def load_settings() -> CacheSettings:
    settings = CacheSettings()
    configure_logging(settings.log_level)
    return settings


def load_resolver_config(settings: CacheSettings) -> ResolverConfig:
    """Build the ResolverConfig or exit with a readable error."""
    try:
        return settings.to_resolver_config()
    except ConfigurationError as exc:
        err_console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
