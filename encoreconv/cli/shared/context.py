"""Conversion execution context - holds initialized state for commands."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

from encoreconv.cli.shared.options import ConversionOptions
from encoreconv.config import get_settings
from encoreconv.utils.logging import get_logger, setup_task_logging

if TYPE_CHECKING:
    from encoreconv.config.settings import EncoreConvSettings
    from encoreconv.core.pipeline import ConversionPipeline
    from encoreconv.core.runner import BatchRunner
    from encoreconv.tools.locator import ToolLocator

log = get_logger(__name__)


@dataclass
class ConversionContext:
    """Execution context for conversion commands.

    Encapsulates the initialization shared by commands that convert files:
    settings loading, task logging, output directory resolution, and
    creation of the locator, pipeline and runner.
    """

    settings: "EncoreConvSettings"
    options: ConversionOptions
    task_id: str
    log_path: Path
    output_dir: Path
    console: Console = field(default_factory=Console)

    @classmethod
    def create(
        cls,
        options: ConversionOptions,
        command_prefix: str = "task",
        console: Console | None = None,
        base_path: Path | None = None,
    ) -> "ConversionContext":
        """Create and initialize a conversion context.

        Args:
            options: Conversion options from CLI
            command_prefix: Prefix for log files (e.g., "convert")
            console: Optional Rich console instance
            base_path: Optional base path for resolving relative output dir

        Returns:
            Initialized ConversionContext
        """
        settings = get_settings()
        console = console or Console()

        task_id, log_path = setup_task_logging(
            log_dir=settings.log_dir,
            prefix=command_prefix,
            verbose=options.verbose,
            file_level=settings.log_level,
            max_value_length=settings.log_max_value_length,
            retention_days=settings.log_retention_days,
        )

        if options.verbose:
            log.info("Logs will be saved to", log_file=str(log_path))

        log.info("Task Configuration", task_id=task_id, config=settings.model_dump())

        output_dir = options.resolve_output_dir(settings, base_path)
        if not options.dry_run:
            output_dir.mkdir(parents=True, exist_ok=True)

        return cls(
            settings=settings,
            options=options,
            task_id=task_id,
            log_path=log_path,
            output_dir=output_dir,
            console=console,
        )

    def create_locator(self) -> "ToolLocator":
        """Create a ToolLocator from the tools settings."""
        from encoreconv.tools.locator import ToolLocator

        return ToolLocator.from_config(self.settings.tools)

    def create_pipeline(self) -> "ConversionPipeline":
        """Create a ConversionPipeline with the current context settings."""
        from encoreconv.core.pipeline import ConversionPipeline

        return ConversionPipeline(
            library=self.settings.tools.library,
            subcommand=self.settings.tools.subcommand,
            keep_intermediate=self.options.resolve_keep_intermediate(self.settings),
        )

    def create_runner(self) -> "BatchRunner":
        """Create a BatchRunner around a fresh pipeline."""
        from encoreconv.core.runner import BatchRunner

        return BatchRunner(self.create_pipeline())
