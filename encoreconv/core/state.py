"""Job and run state for batch conversion."""

import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from encoreconv.config.constants import SOURCE_EXTENSION
from encoreconv.exceptions import StateError
from encoreconv.utils.logging import get_logger

log = get_logger(__name__)


class JobStatus(str, Enum):
    """Status of a single job.

    Transitions: PENDING -> CONVERTING -> DONE | FAILED.
    """

    PENDING = "pending"
    CONVERTING = "converting"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.FAILED)


_ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.CONVERTING},
    JobStatus.CONVERTING: {JobStatus.DONE, JobStatus.FAILED},
    JobStatus.DONE: set(),
    JobStatus.FAILED: set(),
}


def is_source_file(path: str | Path) -> bool:
    """Check whether ``path`` has the Encore extension (case-insensitive)."""
    return Path(path).suffix.lower() == SOURCE_EXTENSION


@dataclass(frozen=True)
class JobSnapshot:
    """Immutable view of a job, published to observers."""

    id: str
    name: str
    source_path: Path
    status: JobStatus
    error: str | None = None
    output_path: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "source_path": str(self.source_path),
            "status": self.status.value,
            "error": self.error,
            "output_path": str(self.output_path) if self.output_path else None,
        }


@dataclass
class Job:
    """A single file queued for conversion."""

    source_path: Path
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = JobStatus.PENDING
    error: str | None = None
    output_path: Path | None = None

    @property
    def name(self) -> str:
        """Display name (file name of the source)."""
        return self.source_path.name

    def transition(
        self,
        status: JobStatus,
        error: str | None = None,
        output_path: Path | None = None,
    ) -> None:
        """Move the job to ``status``, enforcing the state machine.

        Raises:
            StateError: If the transition is not allowed
        """
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise StateError(
                f"Invalid transition for {self.name}: {self.status.value} -> {status.value}"
            )
        self.status = status
        self.error = error if status == JobStatus.FAILED else None
        self.output_path = output_path if status == JobStatus.DONE else None

    def reset(self) -> None:
        """Return the job to PENDING, clearing any previous result."""
        self.status = JobStatus.PENDING
        self.error = None
        self.output_path = None

    def snapshot(self) -> JobSnapshot:
        return JobSnapshot(
            id=self.id,
            name=self.name,
            source_path=self.source_path,
            status=self.status,
            error=self.error,
            output_path=self.output_path,
        )


class JobList:
    """Ordered list of jobs; insertion order is execution order.

    No two jobs share an absolute source path.
    """

    def __init__(self) -> None:
        self._jobs: list[Job] = []

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        return iter(self._jobs)

    def add_paths(self, paths: Iterable[str | Path]) -> list[Job]:
        """Append Encore files in the given order, skipping duplicates.

        Paths without the Encore extension are dropped silently.

        Returns:
            The newly created jobs
        """
        existing = {job.source_path for job in self._jobs}
        added = []
        for raw in paths:
            if not is_source_file(raw):
                continue
            path = Path(raw).expanduser().absolute()
            if path in existing:
                continue
            existing.add(path)
            job = Job(source_path=path)
            self._jobs.append(job)
            added.append(job)

        if added:
            log.debug("Jobs added", count=len(added), total=len(self._jobs))
        return added

    def get(self, job_id: str) -> Job | None:
        for job in self._jobs:
            if job.id == job_id:
                return job
        return None

    def remove(self, job_id: str) -> bool:
        """Remove a job by id. Returns True if a job was removed."""
        before = len(self._jobs)
        self._jobs = [job for job in self._jobs if job.id != job_id]
        return len(self._jobs) != before

    def clear(self) -> None:
        self._jobs.clear()

    def reset_all(self) -> None:
        for job in self._jobs:
            job.reset()

    def snapshots(self) -> list[JobSnapshot]:
        return [job.snapshot() for job in self._jobs]

    @property
    def total(self) -> int:
        return len(self._jobs)

    @property
    def completed_count(self) -> int:
        """Number of jobs that finished successfully."""
        return sum(1 for job in self._jobs if job.status == JobStatus.DONE)

    @property
    def failed_count(self) -> int:
        return sum(1 for job in self._jobs if job.status == JobStatus.FAILED)

    @property
    def processed_count(self) -> int:
        """Number of jobs in a terminal state (done or failed)."""
        return sum(1 for job in self._jobs if job.status.is_terminal)

    @property
    def has_errors(self) -> bool:
        return any(job.status == JobStatus.FAILED for job in self._jobs)


@dataclass
class RunState:
    """Per-run batch state."""

    running: bool = False
    cancel_requested: bool = False
    processed_count: int = 0

    def start(self) -> None:
        self.running = True
        self.cancel_requested = False
        self.processed_count = 0

    def finish(self) -> None:
        self.running = False
        self.cancel_requested = False


@dataclass(frozen=True)
class BatchSummary:
    """Outcome of a batch run."""

    total: int
    done: int
    failed: int
    pending: int
    cancelled: bool = False

    @property
    def has_errors(self) -> bool:
        return self.failed > 0
