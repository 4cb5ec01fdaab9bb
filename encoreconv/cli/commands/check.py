"""Check command for external tool readiness."""

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from encoreconv.config import get_settings
from encoreconv.tools.locator import ToolEnvironment, ToolLocator
from encoreconv.utils.logging import setup_logging

console = Console()


def check(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show discovery details.",
        ),
    ] = False,
) -> None:
    """Check that go-enc2ly, python3 and python-ly are available."""
    settings = get_settings()
    setup_logging(
        console_level="DEBUG" if verbose else "WARNING",
        max_value_length=settings.log_max_value_length,
    )

    locator = ToolLocator.from_config(settings.tools)
    env = asyncio.run(locator.check_environment())

    _display_environment(env)

    if not env.all_ready:
        console.print("\n[bold yellow]Missing dependencies:[/bold yellow]")
        for problem in env.missing():
            console.print(f"  - {escape(problem)}")
        raise typer.Exit(1)

    console.print("\n[green]All dependencies found. Ready to convert.[/green]")


def _display_environment(env: ToolEnvironment) -> None:
    table = Table(title="Tool Environment", show_header=True, header_style="bold")
    table.add_column("Dependency", style="cyan")
    table.add_column("Status")
    table.add_column("Location")

    table.add_row(env.enc2ly_name, _status(env.enc2ly_available), env.enc2ly_path or "-")
    table.add_row(env.python_name, _status(env.python_path is not None), env.python_path or "-")
    table.add_row(
        f"python-{env.library}",
        _status(env.library_available),
        f"{env.python_path} -m {env.library}" if env.library_available else "-",
    )
    console.print(table)


def _status(ok: bool) -> str:
    return "[green]found[/green]" if ok else "[red]missing[/red]"
