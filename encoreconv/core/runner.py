"""Sequential batch runner with cooperative cancellation."""

from collections.abc import Callable, Iterable
from pathlib import Path

from encoreconv.core.pipeline import ConversionPipeline
from encoreconv.core.state import BatchSummary, Job, JobList, JobSnapshot, JobStatus, RunState
from encoreconv.exceptions import (
    BatchRunningError,
    ConfigurationError,
    ConversionCancelledError,
    ConversionError,
    EncoreConvError,
    EnvironmentNotReadyError,
)
from encoreconv.tools.locator import ToolEnvironment
from encoreconv.utils.logging import get_logger

log = get_logger(__name__)

JobObserver = Callable[[JobSnapshot], None]


class BatchRunner:
    """Owns the job list and converts its jobs one at a time, in order.

    All job mutations happen on the task awaiting ``run``. Observers only
    ever receive immutable ``JobSnapshot`` objects. Cancellation is checked
    between jobs and never interrupts a running tool.
    """

    def __init__(self, pipeline: ConversionPipeline | None = None) -> None:
        self.pipeline = pipeline or ConversionPipeline()
        self.jobs = JobList()
        self.state = RunState()
        self._observers: list[JobObserver] = []

    # Collaborator surface

    @property
    def is_running(self) -> bool:
        return self.state.running

    @property
    def total(self) -> int:
        return self.jobs.total

    @property
    def processed_count(self) -> int:
        return self.jobs.processed_count

    @property
    def completed_count(self) -> int:
        return self.jobs.completed_count

    @property
    def has_errors(self) -> bool:
        return self.jobs.has_errors

    def snapshots(self) -> list[JobSnapshot]:
        return self.jobs.snapshots()

    def subscribe(self, observer: JobObserver) -> Callable[[], None]:
        """Register ``observer`` for status changes.

        Returns:
            A callable that unsubscribes the observer
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def add_jobs(self, paths: Iterable[str | Path]) -> list[JobSnapshot]:
        """Queue Encore files for conversion.

        Files without the Encore extension and paths already queued are
        skipped silently.

        Raises:
            BatchRunningError: If a run is in progress
        """
        self._ensure_idle("add jobs")
        added = self.jobs.add_paths(paths)
        return [job.snapshot() for job in added]

    def remove_job(self, job_id: str) -> bool:
        self._ensure_idle("remove jobs")
        return self.jobs.remove(job_id)

    def clear(self) -> None:
        self._ensure_idle("clear the job list")
        self.jobs.clear()

    def cancel(self) -> None:
        """Request cancellation; honoured before the next job starts."""
        if not self.state.running:
            return
        self.state.cancel_requested = True
        log.info("Cancellation requested", processed=self.state.processed_count)

    async def run(self, output_dir: Path | None, tools: ToolEnvironment) -> BatchSummary:
        """Convert every queued job in order.

        Args:
            output_dir: Directory receiving MusicXML files
            tools: Tool environment; must report ready

        Returns:
            BatchSummary of the run

        Raises:
            EnvironmentNotReadyError: If required tools are missing
            ConfigurationError: If no output directory is set
            BatchRunningError: If a run is already in progress

        Any other exception from the pipeline or an observer aborts the batch
        after the current job has been marked FAILED.
        """
        if not tools.all_ready:
            raise EnvironmentNotReadyError(tools)
        if output_dir is None:
            raise ConfigurationError("No output directory selected")
        self._ensure_idle("start a batch")

        output_dir = Path(output_dir)
        self.state.start()
        self.jobs.reset_all()
        for job in self.jobs:
            self._publish(job)

        log.info("Batch started", total=self.jobs.total, output_dir=str(output_dir))

        cancelled = False
        try:
            for job in list(self.jobs):
                if self.state.cancel_requested:
                    cancelled = True
                    log.info("Batch cancelled", next_job=job.name)
                    break
                await self._run_job(job, output_dir, tools)
            else:
                cancelled = self.state.cancel_requested
        finally:
            self.state.finish()

        summary = BatchSummary(
            total=self.jobs.total,
            done=self.jobs.completed_count,
            failed=self.jobs.failed_count,
            pending=self.jobs.total - self.jobs.processed_count,
            cancelled=cancelled,
        )
        log.info(
            "Batch finished",
            total=summary.total,
            done=summary.done,
            failed=summary.failed,
            pending=summary.pending,
            cancelled=summary.cancelled,
        )
        return summary

    async def _run_job(self, job: Job, output_dir: Path, tools: ToolEnvironment) -> None:
        try:
            self._set_status(job, JobStatus.CONVERTING)
            output_path = await self.pipeline.convert(job.source_path, output_dir, tools)
        except EncoreConvError as e:
            error = e
            if self.state.cancel_requested:
                error = ConversionCancelledError(
                    job.source_path, raw_output=getattr(e, "raw_output", "")
                )
            reason = _failure_reason(error)
            log.error("Job failed", file=job.name, error=reason)
            self._set_status(job, JobStatus.FAILED, error=reason)
        except Exception as e:
            # The batch aborts, but the job must not be left in CONVERTING
            log.exception("Unexpected error during conversion", file=job.name)
            if job.status == JobStatus.CONVERTING:
                job.transition(JobStatus.FAILED, error=f"Unexpected error: {e}")
            raise
        else:
            self._set_status(job, JobStatus.DONE, output_path=output_path)
        finally:
            self.state.processed_count += 1

    def _set_status(
        self,
        job: Job,
        status: JobStatus,
        error: str | None = None,
        output_path: Path | None = None,
    ) -> None:
        job.transition(status, error=error, output_path=output_path)
        self._publish(job)

    def _publish(self, job: Job) -> None:
        snapshot = job.snapshot()
        for observer in list(self._observers):
            observer(snapshot)

    def _ensure_idle(self, operation: str) -> None:
        if self.state.running:
            raise BatchRunningError(operation)


def _failure_reason(error: EncoreConvError) -> str:
    if isinstance(error, ConversionError):
        return error.message
    return str(error)
