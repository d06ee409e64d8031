"""Application configuration constants."""

from __future__ import annotations

import sys
from pathlib import Path

APP_NAME = "BatchEncoder"
APP_VERSION = "0.2.0"
ORG_NAME = "BatchEncoder"

# FFmpeg
if sys.platform == "darwin":
    FFMPEG_PATH = "/opt/homebrew/bin/ffmpeg"
elif sys.platform == "win32":
    FFMPEG_PATH = r"C:\ffmpeg\bin\ffmpeg.exe"
else:
    FFMPEG_PATH = "/usr/bin/ffmpeg"

# Timeouts (seconds) for short-lived probe commands
PREFLIGHT_TIMEOUT_SEC = 5       # ffmpeg -version before a job
ENCODER_LIST_TIMEOUT_SEC = 5    # ffmpeg -encoders
GPU_PROBE_TIMEOUT_SEC = 2       # nvidia-smi / lspci / wmic
FFPROBE_TIMEOUT_SEC = 15

# Lines of ffmpeg stderr kept for error reports
DIAGNOSTIC_TAIL_LINES = 200

# Bytes read from the ffmpeg stderr pipe per call
STDERR_CHUNK_SIZE = 4096

# Supported input video formats
VIDEO_EXTENSIONS = [".mp4", ".avi", ".mov", ".mkv", ".wmv", ".flv", ".webm"]

# Logs
LOG_DIR = Path.home() / ".batchencoder" / "logs"
