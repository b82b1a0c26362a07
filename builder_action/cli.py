"""Thin CLI wrapper for builder_action.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from builder_action import __version__
from builder_action.config import get_settings, print_settings_json

app = typer.Typer(
    name="builder-action",
    help="Builder Action - unattended player builds for CI",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Route log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"builder-action version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Builder Action - unattended player builds for CI."""


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
    else:
        backend_display = settings.backend_command or "(not configured)"
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Backend:[/bold]")
        console.print(f"  Backend command:     {backend_display}")
        console.print(f"  Log directory:       {settings.log_dir}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Strict validation:   {settings.strict_validation}")
        console.print(f"  Log level:           {settings.log_level}")
        console.print()
        console.print("[bold]Timeouts (seconds):[/bold]")
        console.print(f"  Validation timeout:  {settings.validation_timeout}")
        console.print(f"  Content timeout:     {settings.content_timeout}")
        console.print(f"  Build timeout:       {settings.build_timeout}")


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def build(
    ctx: typer.Context,
    strict: Annotated[
        bool | None,
        typer.Option(
            "--strict/--no-strict",
            help="Override strict asset validation",
            show_default=False,
        ),
    ] = None,
    log_dir: Annotated[
        Path | None,
        typer.Option("--log-dir", help="Directory for backend logs and reports"),
    ] = None,
) -> None:
    """Build the player from -key value options.

    Example: builder-action build -projectPath . -buildTarget Android
    -customBuildPath out/game.aab -buildVersion 1.2.0 -androidVersionCode 42
    """
    from builder_action.builds.service import run_build

    settings = get_settings()
    updates: dict[str, object] = {}
    if strict is not None:
        updates["strict_validation"] = strict
    if log_dir is not None:
        updates["log_dir"] = log_dir
    if updates:
        settings = settings.model_copy(update=updates)

    configure_logging(settings.log_level)
    code = run_build(ctx.args, settings, console)
    raise typer.Exit(code=int(code))


if __name__ == "__main__":
    app()
