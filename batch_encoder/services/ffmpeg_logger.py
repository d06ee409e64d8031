"""Utility for logging FFmpeg commands and output to a file."""

import logging
import shlex
from pathlib import Path

from batch_encoder.utils.config import LOG_DIR


def get_ffmpeg_log_path() -> Path:
    """Return the path to the FFmpeg log file."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    return LOG_DIR / "ffmpeg.log"


# Setup a specific logger for FFmpeg
_logger = logging.getLogger("ffmpeg_output")
_logger.setLevel(logging.DEBUG)
_logger.propagate = False


def _ensure_handler() -> None:
    """Attach the file handler on first use so importing never touches disk."""
    if _logger.handlers:
        return
    try:
        handler: logging.Handler = logging.FileHandler(get_ffmpeg_log_path(), encoding="utf-8")
    except OSError:
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    _logger.addHandler(handler)


def log_ffmpeg_command(args: list[str]) -> None:
    """Log the FFmpeg command being executed."""
    _ensure_handler()
    _logger.info(f"Executing: {shlex.join(str(a) for a in args)}")


def log_ffmpeg_line(line: str) -> None:
    """Log a single line of FFmpeg output."""
    _ensure_handler()
    _logger.debug(line.rstrip())
