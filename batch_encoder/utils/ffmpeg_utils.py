"""Locate the ffmpeg and ffprobe executables."""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def find_ffmpeg(configured_path: str | None = None) -> str | None:
    """
    Find ffmpeg executable.

    Search order:
    1. *configured_path* (user preference), then config.FFMPEG_PATH
    2. System PATH (ffmpeg command)
    3. Bundled FFmpeg (imageio-ffmpeg)

    Returns:
        Path to ffmpeg or None if not found
    """
    from .config import FFMPEG_PATH
    for candidate in (configured_path, FFMPEG_PATH):
        if candidate and Path(candidate).is_file():
            return candidate

    system_ffmpeg = shutil.which("ffmpeg")
    if system_ffmpeg:
        return system_ffmpeg

    try:
        from .ffmpeg_bundled import get_bundled_ffmpeg
        return get_bundled_ffmpeg()
    except (ImportError, RuntimeError) as e:
        logger.debug(f"Bundled FFmpeg unavailable: {e}")

    return None


def find_ffprobe(ffmpeg_path: str | None = None) -> str | None:
    """
    Find ffprobe executable (usually alongside ffmpeg).

    Returns:
        Path to ffprobe or None if not found
    """
    ffprobe = shutil.which("ffprobe")
    if ffprobe:
        return ffprobe

    ffmpeg_path = ffmpeg_path or find_ffmpeg()
    if ffmpeg_path:
        sibling = Path(ffmpeg_path).parent / ("ffprobe.exe" if sys.platform == "win32" else "ffprobe")
        if sibling.is_file():
            return str(sibling)

    return None
