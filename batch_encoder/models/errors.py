"""Error taxonomy for encoding jobs.

Errors carry structured fields (category, offending path, cause, captured
ffmpeg output) so the UI can format them itself; ``str()`` gives a
ready-made message for logs and the CLI.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ErrorCategory(str, Enum):
    CONFIGURATION = "configuration"
    PRECONDITION = "precondition"
    SUBPROCESS = "subprocess"
    POSTCONDITION = "postcondition"


class EncodingError(Exception):
    """Base class for every failure raised by the encoding engine."""

    category = ErrorCategory.CONFIGURATION

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        cause: BaseException | None = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.cause = cause
        self.stderr = stderr
        # Input file being encoded when the error happened, set by the encoder
        self.input_path: Path | None = None

    def __str__(self) -> str:
        text = self.message
        if self.input_path is not None and self.input_path != self.path:
            text = f"{self.input_path.name}: {text}"
        if self.path is not None:
            text = f"{text} ({self.path})"
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        if self.stderr:
            text = f"{text}\nError output:\n{self.stderr}"
        return text


# ---------------------------------------------------------------- configuration

class ConfigurationError(EncodingError):
    """Options rejected before any subprocess is spawned."""

    category = ErrorCategory.CONFIGURATION


class UnsupportedFormatError(ConfigurationError):
    pass


class UnsupportedCodecError(ConfigurationError):
    pass


class QualityOutOfRangeError(ConfigurationError):
    pass


class InvalidTwoPassConfigError(ConfigurationError):
    pass


# ---------------------------------------------------------------- precondition

class PreconditionError(EncodingError):
    """A file cannot be encoded; checked before ffmpeg is launched for it."""

    category = ErrorCategory.PRECONDITION


class ToolNotFoundError(PreconditionError):
    pass


class InputNotFoundError(PreconditionError):
    pass


class OutputDirectoryError(PreconditionError):
    pass


class OutputExistsError(PreconditionError):
    pass


# ---------------------------------------------------------------- runtime

class SubprocessFailure(EncodingError):
    """ffmpeg could not be started or exited abnormally."""

    category = ErrorCategory.SUBPROCESS

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        phase: str = "",
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.returncode = returncode
        self.phase = phase


class PostconditionError(EncodingError):
    category = ErrorCategory.POSTCONDITION


class OutputMissingError(PostconditionError):
    """ffmpeg reported success but the output file is not there."""
