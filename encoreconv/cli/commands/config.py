"""Config command for configuration management."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from encoreconv.config import get_settings
from encoreconv.config.constants import CONFIG_LOCATIONS, DEFAULT_CONFIG_FILE

# Create config sub-app
config_app = typer.Typer(help="Configuration management.")
console = Console()


@config_app.command("show")
def show() -> None:
    """Show current configuration."""
    settings = get_settings()

    console.print("\n[bold blue]Current Configuration[/bold blue]\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    # Global settings
    table.add_row("Log Level", settings.log_level)
    table.add_row("Log Directory", settings.log_dir)
    table.add_row("Log Retention", f"{settings.log_retention_days} days")
    table.add_row("Log Value Limit", f"{settings.log_max_value_length} chars")

    # Output settings
    table.add_row("Output Directory", settings.output.default_dir)
    table.add_row("Keep Intermediate", str(settings.output.keep_intermediate))

    # Tool settings
    tools = settings.tools
    table.add_row("Extractor", tools.enc2ly_path or f"{tools.enc2ly_name} (auto)")
    table.add_row("Interpreter", tools.python_path or f"{tools.python_name} (auto)")
    table.add_row("Exporter", f"-m {tools.library} {tools.subcommand}")
    table.add_row("Search Directories", ", ".join(tools.search_order) or "None")
    table.add_row("Fallback Shell", tools.shell)

    console.print(table)
    console.print()


DEFAULT_CONFIG_TEMPLATE = """# encoreconv configuration

log_level: "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
log_dir: ".logs"
log_retention_days: 7  # Older task logs are removed; 0 keeps all
log_max_value_length: 500  # Longer tool output is shortened in logs

output:
  default_dir: "output"
  keep_intermediate: false  # Keep .ly files after export

tools:
  enc2ly_name: "go-enc2ly"
  python_name: "python3"
  library: "ly"  # python -m ly musicxml ...
  subcommand: "musicxml"
  # enc2ly_path: "/opt/tools/go-enc2ly"  # Skip discovery
  # python_path: "/usr/local/bin/python3"
  extra_search_dirs: []  # Checked before the built-in locations
  # shell: "/bin/zsh"  # Used for the `which` fallback
"""


@config_app.command("init")
def init(
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Path to create config file.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing config file.",
        ),
    ] = False,
) -> None:
    """Initialize a configuration file."""
    config_path = path or Path.cwd() / DEFAULT_CONFIG_FILE

    if config_path.exists() and not force:
        console.print(f"[red]Error:[/red] Config file already exists at {config_path}")
        console.print("Use --force to overwrite.")
        raise typer.Exit(1)

    config_path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    console.print(f"[green]Created config file at:[/green] {config_path}")


@config_app.command("locations")
def locations() -> None:
    """Show configuration file search locations."""
    console.print("\n[bold blue]Configuration File Locations[/bold blue]\n")
    console.print("encoreconv searches for configuration files in the following order:\n")

    for i, loc in enumerate(CONFIG_LOCATIONS, 1):
        exists = "[green]exists[/green]" if loc.exists() else "[dim]not found[/dim]"
        console.print(f"  {i}. {loc} ({exists})")

    console.print()
    console.print("[dim]Environment variables with ENCORECONV_ prefix are also supported.[/dim]")
    console.print()
