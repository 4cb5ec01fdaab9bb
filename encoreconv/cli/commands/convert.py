"""Convert command for Encore files."""

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from encoreconv.cli.callbacks import validate_input_paths, validate_output_dir
from encoreconv.cli.shared import ConversionContext, ConversionOptions, SignalHandler
from encoreconv.config.constants import SOURCE_EXTENSION
from encoreconv.core.pipeline import artifact_paths
from encoreconv.core.runner import BatchRunner
from encoreconv.core.state import BatchSummary, JobSnapshot, JobStatus, is_source_file
from encoreconv.tools.locator import ToolEnvironment
from encoreconv.utils.logging import get_console, get_logger

console = get_console()
log = get_logger(__name__)


def convert(
    inputs: Annotated[
        list[Path],
        typer.Argument(
            help="Encore files, or directories containing them.",
            callback=validate_input_paths,
            resolve_path=True,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output directory for MusicXML files.",
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
            callback=validate_output_dir,
        ),
    ] = None,
    recursive: Annotated[
        bool,
        typer.Option(
            "--recursive",
            "-r",
            help="Search input directories recursively.",
        ),
    ] = False,
    keep_intermediate: Annotated[
        bool | None,
        typer.Option(
            "--keep-intermediate/--no-keep-intermediate",
            help="Keep the intermediate LilyPond (.ly) files.",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print the final job list as JSON.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Show the conversion plan without executing.",
        ),
    ] = False,
) -> None:
    """Convert Encore (.enc) files to MusicXML.

    Examples:
        encoreconv convert song.enc
        encoreconv convert ./scores -o ./musicxml -r
        encoreconv convert a.enc b.enc --keep-intermediate
    """
    options = ConversionOptions(
        output_dir=output,
        keep_intermediate=keep_intermediate,
        verbose=verbose,
        dry_run=dry_run,
    )
    ctx = ConversionContext.create(
        options, command_prefix="convert", console=console, base_path=Path.cwd()
    )

    runner = ctx.create_runner()
    runner.add_jobs(_expand_inputs(inputs, recursive))

    if runner.total == 0:
        console.print(f"[yellow]No {SOURCE_EXTENSION} files to convert.[/yellow]")
        raise typer.Exit(0)

    if dry_run:
        _show_dry_run(runner.snapshots(), ctx.output_dir)
        return

    try:
        env = asyncio.run(ctx.create_locator().check_environment())
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        log.error("Tool environment check failed", error=str(e), exc_info=True)
        raise typer.Exit(1) from e

    if not env.all_ready:
        _show_missing(env)
        raise typer.Exit(1)

    log.info(
        "Starting conversion",
        task_id=ctx.task_id,
        files=runner.total,
        output_dir=str(ctx.output_dir),
    )

    with SignalHandler(console, on_interrupt=runner.cancel, context_info={"task_id": ctx.task_id}):
        try:
            summary = asyncio.run(_execute_batch(runner, ctx.output_dir, env, verbose))
        except Exception as e:
            console.print(f"[red]Error:[/red] {e}")
            log.error("Batch conversion failed", error=str(e), exc_info=True)
            raise typer.Exit(1) from e

    if json_output:
        typer.echo(json.dumps([s.to_dict() for s in runner.snapshots()], indent=2))
    else:
        _display_summary(summary, runner.snapshots())

    if summary.cancelled:
        raise typer.Exit(130)
    if summary.has_errors:
        raise typer.Exit(1)


def _expand_inputs(inputs: list[Path], recursive: bool) -> list[Path]:
    """Expand directories into their Encore files, keeping argument order."""
    paths: list[Path] = []
    for item in inputs:
        if item.is_dir():
            pattern = "**/*" if recursive else "*"
            found = [p for p in item.glob(pattern) if p.is_file() and is_source_file(p)]
            paths.extend(sorted(found, key=lambda p: str(p)))
        else:
            paths.append(item)
    return paths


async def _execute_batch(
    runner: BatchRunner,
    output_dir: Path,
    env: ToolEnvironment,
    verbose: bool = False,
) -> BatchSummary:
    """Run the batch with a Rich progress display."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("({task.completed}/{task.total})"),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    ) as progress:
        progress_task_id = progress.add_task("[cyan]Converting files...", total=runner.total)

        def on_status(snapshot: JobSnapshot) -> None:
            if snapshot.status == JobStatus.CONVERTING:
                progress.update(progress_task_id, description=f"[cyan]{escape(snapshot.name)}")
            elif snapshot.status.is_terminal:
                progress.update(progress_task_id, completed=runner.processed_count)
                if verbose or snapshot.status == JobStatus.FAILED:
                    progress.console.print(_status_line(snapshot))

        unsubscribe = runner.subscribe(on_status)
        try:
            summary = await runner.run(output_dir, env)
        finally:
            unsubscribe()

        progress.update(progress_task_id, description="[green]Done")

    return summary


def _status_line(snapshot: JobSnapshot) -> str:
    if snapshot.status == JobStatus.DONE:
        return f"[green]OK[/green] {escape(snapshot.name)} -> {escape(str(snapshot.output_path))}"
    return f"[red]FAILED[/red] {escape(snapshot.name)}: {escape(snapshot.error or '')}"


def _show_dry_run(snapshots: list[JobSnapshot], output_dir: Path) -> None:
    """Display the conversion plan."""
    console.print("\n[bold blue]Dry Run - Conversion Plan[/bold blue]\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Source", style="cyan")
    table.add_column("Output")

    for i, snapshot in enumerate(snapshots, 1):
        _, final_path = artifact_paths(snapshot.source_path, output_dir)
        table.add_row(str(i), str(snapshot.source_path), str(final_path))

    console.print(table)
    console.print(f"\n[dim]{len(snapshots)} file(s) would be converted.[/dim]")


def _show_missing(env: ToolEnvironment) -> None:
    console.print("[red]Error:[/red] Missing dependencies:")
    for problem in env.missing():
        console.print(f"  - {escape(problem)}")
    console.print("[dim]Run `encoreconv check` after installing to verify.[/dim]")


def _display_summary(summary: BatchSummary, snapshots: list[JobSnapshot]) -> None:
    """Display batch processing summary."""
    console.print()

    table = Table(title="Batch Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value")

    table.add_row("Total Files", str(summary.total))
    table.add_row("Converted", f"[green]{summary.done}[/green]")
    table.add_row("Failed", f"[red]{summary.failed}[/red]")
    if summary.pending:
        table.add_row("Not Attempted", f"[yellow]{summary.pending}[/yellow]")
    if summary.cancelled:
        table.add_row("Status", "[yellow]Cancelled[/yellow]")

    console.print(table)

    failed = [s for s in snapshots if s.status == JobStatus.FAILED]
    if failed:
        console.print()
        console.print("[bold red]Failed Files:[/bold red]")
        for snapshot in failed[:10]:
            console.print(f"  [dim]-[/dim] {escape(snapshot.name)}")
            console.print(f"    [dim]{escape(snapshot.error or '')}[/dim]")
        if len(failed) > 10:
            console.print(f"  [dim]... and {len(failed) - 10} more[/dim]")
