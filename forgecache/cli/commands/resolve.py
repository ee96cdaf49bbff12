"""``forgecache resolve NAME PATH`` — run one component through the hook.

Exit codes: 0 when the component was installed from the cache or falls back
to a source build, 1 on a policy violation, 2 on a configuration error.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from forgecache.cli._common import console, err_console, load_resolver_config, load_settings
from forgecache.core.hook import InterceptionHook
from forgecache.core.policy import PolicyViolation
from forgecache.core.resolver import ArtifactResolver
from forgecache.models.outcomes import NotSatisfied
from forgecache.models.policy import PolicyFlags
from forgecache.models.request import DependencyRequest


def resolve_cmd(
    name: str = typer.Argument(..., help="Component name as passed to find_package."),
    path: Path = typer.Argument(..., help="Component source tree."),
    version: str = typer.Option(
        None, "--version", "-v", help="Requested version (must match exactly)."
    ),
    force_from_source: bool = typer.Option(
        False, "--force-from-source", help="Never use a pre-built artifact."
    ),
    require_prebuilt: bool = typer.Option(
        False, "--require-prebuilt", help="Fail instead of falling back to source."
    ),
    install_prefix: Path = typer.Option(
        None, "--prefix", "-p", help="Install destination (overrides settings)."
    ),
) -> None:
    """Install NAME from the artifact cache, or report why it must be built."""
    settings = load_settings()
    config = load_resolver_config(settings)

    updates: dict[str, object] = {}
    if force_from_source or require_prebuilt:
        try:
            flags = PolicyFlags(
                force_from_source=force_from_source, require_prebuilt=require_prebuilt
            )
        except ValueError:
            err_console.print(
                "[bold red]Configuration error:[/bold red] "
                "--force-from-source and --require-prebuilt are mutually exclusive"
            )
            raise typer.Exit(code=2)
        updates["policies"] = {**config.policies, name.lower(): flags}
    if install_prefix is not None:
        updates["install_prefix"] = install_prefix
    if updates:
        config = config.model_copy(update=updates)

    resolver = ArtifactResolver(config)
    hook = InterceptionHook(config, resolver, {name: path})
    request = DependencyRequest(name=name, version=version)

    try:
        outcome = hook.provide(request)
    except PolicyViolation as exc:
        err_console.print(
            Panel(str(exc), title="[bold red]Policy violation[/bold red]", border_style="red")
        )
        raise typer.Exit(code=1)

    if isinstance(outcome, NotSatisfied):
        console.print(
            Panel(
                outcome.message(),
                title="[bold yellow]Build from source[/bold yellow]",
                border_style="yellow",
            )
        )
        return

    console.print(
        Panel(
            "\n".join([
                f"[bold]Component:[/bold] {outcome.component}",
                f"[bold]Version:[/bold]   {outcome.version}",
                f"[bold]Source:[/bold]    {outcome.source.value}",
                f"[bold]Prefix:[/bold]    {outcome.install_prefix}",
            ]),
            title="[bold green]Installed pre-built artifact[/bold green]",
            border_style="green",
        )
    )
