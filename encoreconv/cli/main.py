"""Main CLI application using Typer."""

from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console

from encoreconv import __version__
from encoreconv.cli.commands.check import check
from encoreconv.cli.commands.config import config_app
from encoreconv.cli.commands.convert import convert

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="encoreconv",
    help="Batch convert Encore scores to MusicXML via LilyPond.",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()

app.command(name="convert", help="Convert Encore files to MusicXML.")(convert)
app.command(name="check", help="Check external tool availability.")(check)
app.add_typer(config_app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]encoreconv[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """encoreconv - Encore to MusicXML batch converter.

    Each file is converted with go-enc2ly (Encore -> LilyPond) and then
    python-ly (LilyPond -> MusicXML).
    """
    pass


if __name__ == "__main__":
    app()
