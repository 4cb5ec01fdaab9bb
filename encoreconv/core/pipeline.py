"""Two-stage conversion pipeline: Encore -> LilyPond -> MusicXML."""

from pathlib import Path

from encoreconv.config.constants import (
    DEFAULT_LIBRARY,
    DEFAULT_SUBCOMMAND,
    FINAL_EXTENSION,
    INTERMEDIATE_EXTENSION,
)
from encoreconv.exceptions import (
    ConversionError,
    EnvironmentNotReadyError,
    Stage1EmptyError,
    Stage1FailedError,
    Stage2FailedError,
    Stage2NoOutputError,
)
from encoreconv.tools.locator import ToolEnvironment
from encoreconv.tools.process import ProcessResult, ProcessRunner
from encoreconv.utils.logging import get_logger

log = get_logger(__name__)


def artifact_paths(source_path: Path, output_dir: Path) -> tuple[Path, Path]:
    """Compute the intermediate and final artifact paths for a source file.

    Returns:
        Tuple of (intermediate_path, final_path)
    """
    base = source_path.stem
    return (
        output_dir / f"{base}{INTERMEDIATE_EXTENSION}",
        output_dir / f"{base}{FINAL_EXTENSION}",
    )


class ConversionPipeline:
    """Converts one Encore file into MusicXML.

    Handles the complete flow for a single file:
    1. Run the extractor, capturing LilyPond text from its stdout
    2. Write the intermediate .ly file (stdout bytes, unmodified)
    3. Remove any stale .musicxml file, then run the python-ly exporter
    4. Verify the output file exists (exit status 0 alone is not proof)
    5. Remove the intermediate file

    Each stage failure raises a distinct ``ConversionError`` subclass.
    Failing to spawn a tool raises ``ToolUnreachableError``.
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        library: str = DEFAULT_LIBRARY,
        subcommand: str = DEFAULT_SUBCOMMAND,
        keep_intermediate: bool = False,
    ) -> None:
        """Initialize the conversion pipeline.

        Args:
            runner: Process runner used for both stages
            library: Python module providing the exporter (``-m <library>``)
            subcommand: Exporter subcommand selecting MusicXML output
            keep_intermediate: Keep the .ly file after a successful export
        """
        self.runner = runner or ProcessRunner()
        self.library = library
        self.subcommand = subcommand
        self.keep_intermediate = keep_intermediate

    @property
    def exporter_label(self) -> str:
        """Name used for the exporter in failure messages."""
        return f"{self.library} {self.subcommand}"

    async def convert(self, source_path: Path, output_dir: Path, tools: ToolEnvironment) -> Path:
        """Convert ``source_path`` into ``output_dir``.

        Args:
            source_path: Encore file to convert
            output_dir: Directory receiving the MusicXML file
            tools: Resolved tool environment

        Returns:
            Path of the generated MusicXML file
        """
        if tools.enc2ly_path is None or tools.python_path is None:
            raise EnvironmentNotReadyError(tools)

        source_path = Path(source_path)
        output_dir = Path(output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConversionError(source_path, f"Could not create {output_dir}: {e}") from e
        ly_path, musicxml_path = artifact_paths(source_path, output_dir)

        log.info("Converting file", file=str(source_path), output_dir=str(output_dir))

        await self._run_extractor(source_path, ly_path, tools)
        await self._run_exporter(source_path, ly_path, musicxml_path, tools)

        if not self.keep_intermediate:
            self._remove_intermediate(ly_path)

        log.info("File converted", file=str(source_path), output=str(musicxml_path))
        return musicxml_path

    async def _run_extractor(self, source_path: Path, ly_path: Path, tools: ToolEnvironment) -> None:
        """Stage 1: the extractor writes LilyPond to stdout."""
        name = tools.enc2ly_name
        result = await self.runner.run(tools.enc2ly_path, [str(source_path)])

        if not result.ok:
            info = result.stderr or f"Exit code {result.exit_code}"
            log.warning("Stage 1 failed", file=str(source_path), exit_code=result.exit_code)
            raise Stage1FailedError(source_path, f"{name} error: {info}", raw_output=_raw(result))

        if not result.stdout_bytes:
            info = result.stderr or "No output produced"
            log.warning("Stage 1 produced no output", file=str(source_path))
            raise Stage1EmptyError(
                source_path, f"{name} produced no output: {info}", raw_output=_raw(result)
            )

        try:
            ly_path.write_bytes(result.stdout_bytes)
        except OSError as e:
            raise ConversionError(
                source_path, f"Could not write {ly_path.name}: {e}", raw_output=_raw(result)
            ) from e

        log.debug("Stage 1 finished", file=str(source_path), intermediate=str(ly_path))

    async def _run_exporter(
        self, source_path: Path, ly_path: Path, musicxml_path: Path, tools: ToolEnvironment
    ) -> None:
        """Stage 2: python-ly writes MusicXML to the destination path."""
        # A file left by an earlier job or run must not pass the existence check
        try:
            musicxml_path.unlink(missing_ok=True)
        except OSError as e:
            raise ConversionError(
                source_path, f"Could not remove existing {musicxml_path.name}: {e}"
            ) from e

        args = ["-m", self.library, self.subcommand, str(ly_path), "-o", str(musicxml_path)]
        result = await self.runner.run(tools.python_path, args)

        if not result.ok:
            info = result.stderr or result.stdout or f"Exit code {result.exit_code}"
            log.warning("Stage 2 failed", file=str(source_path), exit_code=result.exit_code)
            raise Stage2FailedError(
                source_path, f"{self.exporter_label} error: {info}", raw_output=_raw(result)
            )

        # python-ly may exit 0 after printing warnings without writing anything
        if not musicxml_path.exists():
            info = result.stdout or "Output file was not generated"
            log.warning("Stage 2 produced no file", file=str(source_path), expected=str(musicxml_path))
            raise Stage2NoOutputError(
                source_path, f"{self.exporter_label}: {info}", raw_output=result.stdout
            )

        log.debug("Stage 2 finished", file=str(source_path), output=str(musicxml_path))

    def _remove_intermediate(self, ly_path: Path) -> None:
        try:
            ly_path.unlink(missing_ok=True)
        except OSError as e:
            log.debug("Could not remove intermediate file", path=str(ly_path), error=str(e))


def _raw(result: ProcessResult) -> str:
    """Captured diagnostic text, stderr first."""
    return result.stderr or result.stdout
