"""
Hardware acceleration utilities for FFmpeg.
Lists the encoders the front-end can offer on this machine.
"""
from __future__ import annotations

import logging
import subprocess
import sys
from dataclasses import replace

from batch_encoder.infrastructure.ffmpeg_runner import FFmpegRunner, get_ffmpeg_runner
from batch_encoder.models.codec import CodecInfo
from batch_encoder.utils.config import ENCODER_LIST_TIMEOUT_SEC, GPU_PROBE_TIMEOUT_SEC

logger = logging.getLogger(__name__)

# Always offered; ffmpeg builds without libx264/libx265 fail at encode time
_CPU_BASELINE = (
    CodecInfo("h264", "H.264 (CPU)", "cpu", ["mp4"]),
    CodecInfo("hevc", "HEVC (CPU)", "cpu", ["mp4"]),
)

_APPLE_CODECS = (
    CodecInfo("hevc_videotoolbox", "HEVC (Apple Silicon/Intel)", "apple", ["mp4"]),
    CodecInfo("h264_videotoolbox", "H.264 (Apple Silicon/Intel)", "apple", ["mp4"]),
)

_NVIDIA_CODECS = (
    CodecInfo("hevc_nvenc", "HEVC (NVIDIA GPU)", "nvidia", ["mp4"]),
    CodecInfo("h264_nvenc", "H.264 (NVIDIA GPU)", "nvidia", ["mp4"]),
)

_INTEL_CODECS = (
    CodecInfo("hevc_qsv", "HEVC (Intel QuickSync)", "intel", ["mp4"]),
    CodecInfo("h264_qsv", "H.264 (Intel QuickSync)", "intel", ["mp4"]),
)

# (substring in `ffmpeg -encoders`, codec offered)
_VP_CODECS = (
    ("libvpx", CodecInfo("vp8", "VP8", "cpu", ["webm"])),
    ("libvpx-vp9", CodecInfo("vp9", "VP9", "cpu", ["webm"])),
)


def get_available_codecs(runner: FFmpegRunner | None = None) -> list[CodecInfo]:
    """
    Encoders usable on this machine.

    The CPU H.264/HEVC entries are always present. Hardware entries need
    both the GPU (or OS) and ffmpeg's advertised encoder list; VP8/VP9 need
    libvpx in the encoder list. If the list cannot be read, only the
    baseline is returned.
    """
    codecs = [_copy(c) for c in _CPU_BASELINE]

    runner = runner or get_ffmpeg_runner()
    try:
        result = runner.run(
            ["-hide_banner", "-encoders"],
            check=True,
            timeout=ENCODER_LIST_TIMEOUT_SEC,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning(f"Failed to get ffmpeg encoder list (using default codecs only): {e}")
        return codecs
    encoders = result.stdout

    if sys.platform == "darwin":
        codecs += _advertised(_APPLE_CODECS, encoders)
    elif sys.platform == "win32" or sys.platform.startswith("linux"):
        if has_nvidia_gpu():
            codecs += _advertised(_NVIDIA_CODECS, encoders)
        if has_intel_gpu():
            codecs += _advertised(_INTEL_CODECS, encoders)

    for marker, info in _VP_CODECS:
        if marker in encoders:
            codecs.append(_copy(info))

    return codecs


def _advertised(candidates: tuple[CodecInfo, ...], encoders: str) -> list[CodecInfo]:
    return [_copy(c) for c in candidates if c.name in encoders]


def _copy(info: CodecInfo) -> CodecInfo:
    return replace(info, formats=list(info.formats))


def _probe_output(cmd: list[str]) -> str | None:
    """stdout of a short probe command, or None if it fails or hangs."""
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=GPU_PROBE_TIMEOUT_SEC,
            check=True,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    return result.stdout


def has_nvidia_gpu() -> bool:
    """Check if an NVIDIA GPU is present."""
    if sys.platform == "win32":
        return _probe_output(["nvidia-smi"]) is not None
    if sys.platform.startswith("linux"):
        output = _probe_output(["lspci"])
        return output is not None and "nvidia" in output.lower()
    return False


def has_intel_gpu() -> bool:
    """Check if an Intel integrated/discrete GPU is present."""
    if sys.platform == "win32":
        output = _probe_output(["wmic", "path", "win32_VideoController", "get", "name"])
    elif sys.platform.startswith("linux"):
        output = _probe_output(["lspci"])
    else:
        return False
    if output is None:
        return False
    lowered = output.lower()
    return "intel" in lowered and "graphics" in lowered
