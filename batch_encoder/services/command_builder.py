"""Build ffmpeg argument lists from validated encoding options.

Argument order matters to ffmpeg's option precedence and is fixed:
input, video codec, quality flag, scale filter, audio flags. The output
path is appended by the caller.
"""

from __future__ import annotations

import os
import secrets
import tempfile
import time
from pathlib import Path

from batch_encoder.models.codec import QualityMode
from batch_encoder.models.encoding_options import EncodingOptions


def _quality_args(options: EncodingOptions) -> list[str]:
    if options.quality_mode == QualityMode.CRF:
        return ["-crf", str(options.quality_value)]
    if options.quality_mode == QualityMode.BITRATE:
        return ["-b:v", f"{options.quality_value}k"]
    return []


def _scale_args(options: EncodingOptions) -> list[str]:
    if options.wants_resize:
        return ["-vf", f"scale={options.width}:{options.height}"]
    return []


def _audio_args(options: EncodingOptions) -> list[str]:
    args = ["-c:a", options.audio_codec or "copy"]
    if options.audio_bitrate > 0:
        args += ["-b:a", f"{options.audio_bitrate}k"]
    if options.audio_samplerate > 0:
        args += ["-ar", str(options.audio_samplerate)]
    return args


def build_ffmpeg_args(options: EncodingOptions, input_path: Path | str) -> list[str]:
    """Single-pass arguments for *input_path* (output path not included)."""
    return [
        "-i", str(input_path),
        "-c:v", options.video_codec,
        *_quality_args(options),
        *_scale_args(options),
        *_audio_args(options),
    ]


def build_2pass_args(
    options: EncodingOptions,
    input_path: Path | str,
    pass_log_file: Path | str,
) -> tuple[list[str], list[str]]:
    """Arguments for the analysis pass and the final pass.

    Pass 1 drops audio and writes to the null muxer; only the statistics in
    *pass_log_file* survive. Pass 2 reads them back and carries the audio
    settings; its output path is appended by the caller.
    """
    common = [
        "-i", str(input_path),
        "-c:v", options.video_codec,
        "-b:v", f"{options.quality_value}k",
    ]

    pass1 = [
        *common,
        "-pass", "1",
        "-passlogfile", str(pass_log_file),
        "-an",
        "-f", "null",
        *_scale_args(options),
        os.devnull,
    ]

    pass2 = [
        *common,
        "-pass", "2",
        "-passlogfile", str(pass_log_file),
        *_scale_args(options),
        *_audio_args(options),
    ]
    return pass1, pass2


def make_pass_log_path(directory: Path | str | None = None) -> Path:
    """Fresh pass-log base path, unique per call even within one nanosecond."""
    base = Path(directory) if directory is not None else Path(tempfile.gettempdir())
    return base / f"ffmpeg2pass_{time.time_ns()}_{secrets.token_hex(4)}"


def pass_log_artifacts(pass_log_file: Path | str) -> list[Path]:
    """Files ffmpeg writes next to the pass-log base path (x264 adds the mbtree)."""
    base = str(pass_log_file)
    return [Path(f"{base}-0.log"), Path(f"{base}-0.log.mbtree")]
