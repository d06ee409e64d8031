"""Per-file job records (pure Python, no Qt dependency)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class JobState(str, Enum):
    PENDING = "pending"
    VALIDATING = "validating"
    SINGLE_PASS = "single_pass"
    PASS1 = "pass1"
    PASS2 = "pass2"
    VERIFYING = "verifying"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED)


@dataclass
class FileJob:
    """Tracks one input file through an encoding run."""

    input_path: Path
    output_path: Path | None = None
    state: JobState = JobState.PENDING
    error_message: str = ""

    @property
    def filename(self) -> str:
        return self.input_path.name
