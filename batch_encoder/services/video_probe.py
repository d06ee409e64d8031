"""Find video files and read their metadata with ffprobe."""

from __future__ import annotations

import json
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from batch_encoder.infrastructure.ffmpeg_runner import FFmpegRunner, get_ffmpeg_runner
from batch_encoder.utils.config import FFPROBE_TIMEOUT_SEC, VIDEO_EXTENSIONS

logger = logging.getLogger(__name__)


class ProbeError(Exception):
    """ffprobe failed or its report could not be read."""

    def __init__(self, message: str, partial_results: list | None = None):
        super().__init__(message)
        self.partial_results = partial_results or []


@dataclass
class VideoMetadata:
    """What the file list shows for one input video."""

    name: str
    size: int = 0           # bytes
    duration: float = 0.0   # seconds
    format: str = ""        # first entry of ffprobe's format_name
    codec: str = ""
    path: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "size": self.size,
            "duration": self.duration,
            "format": self.format,
            "codec": self.codec,
            "path": self.path,
        }


def is_video_file(path: Path | str) -> bool:
    return Path(path).suffix.lower() in VIDEO_EXTENSIONS


def find_video_files(path: Path | str) -> list[Path]:
    """Video files at *path*: the file itself, or a recursive directory scan.

    Hidden files and directories (leading dot) are skipped.

    Raises:
        OSError: *path* does not exist or a directory cannot be read.
    """
    root = Path(path)
    if not root.is_dir():
        root.stat()  # raises for a missing path
        return [root] if is_video_file(root) else []

    def _raise(error: OSError) -> None:
        raise error

    videos: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for name in sorted(filenames):
            if not name.startswith(".") and is_video_file(name):
                videos.append(Path(dirpath) / name)
    return videos


def process_video(file_path: Path | str, runner: FFmpegRunner | None = None) -> VideoMetadata:
    """Probe one file.

    Raises:
        ProbeError: ffprobe missing, failed, timed out, or printed bad JSON.
    """
    runner = runner or get_ffmpeg_runner()
    path = Path(file_path)

    try:
        result = runner.run_ffprobe(
            [
                "-v", "quiet",
                "-print_format", "json",
                "-show_format",
                "-show_streams",
                str(path),
            ],
            check=True,
            timeout=FFPROBE_TIMEOUT_SEC,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise ProbeError(f"ffprobe execution failed for {path}: {e}") from e

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ProbeError(f"JSON parsing failed for {path}: {e}") from e

    fmt = data.get("format", {})
    codec = ""
    for stream in data.get("streams", []):
        if stream.get("codec_name"):
            codec = stream["codec_name"]
            break

    return VideoMetadata(
        name=path.name,
        size=_to_int(fmt.get("size")),
        duration=_to_float(fmt.get("duration")),
        format=(fmt.get("format_name") or "").split(",")[0],
        codec=codec,
        path=str(path),
    )


def process_paths(
    paths: Iterable[Path | str],
    runner: FFmpegRunner | None = None,
) -> list[VideoMetadata]:
    """Probe every video found under *paths*.

    All paths are processed even if some fail; failures are reported
    together afterwards.

    Raises:
        ProbeError: at least one path or file failed. ``partial_results``
            on the exception holds the metadata that was collected.
    """
    results: list[VideoMetadata] = []
    errors: list[str] = []

    for path in paths:
        try:
            video_paths = find_video_files(path)
        except OSError as e:
            errors.append(f"Error processing path ({path}): {e}")
            continue

        for video_path in video_paths:
            try:
                results.append(process_video(video_path, runner))
            except ProbeError as e:
                errors.append(f"Error processing video ({video_path}): {e}")

    if errors:
        for message in errors:
            logger.warning(message)
        raise ProbeError(
            "errors occurred while processing files:\n" + "\n".join(errors),
            partial_results=results,
        )

    return results


def _to_int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
