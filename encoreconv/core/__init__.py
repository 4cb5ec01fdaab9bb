"""Core processing module for encoreconv."""

from encoreconv.core.pipeline import ConversionPipeline, artifact_paths
from encoreconv.core.runner import BatchRunner
from encoreconv.core.state import (
    BatchSummary,
    Job,
    JobList,
    JobSnapshot,
    JobStatus,
    RunState,
    is_source_file,
)

__all__ = [
    "BatchRunner",
    "BatchSummary",
    "ConversionPipeline",
    "Job",
    "JobList",
    "JobSnapshot",
    "JobStatus",
    "RunState",
    "artifact_paths",
    "is_source_file",
]
