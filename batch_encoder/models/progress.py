"""Encoding progress snapshot."""

from __future__ import annotations

from dataclasses import asdict, dataclass

STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"


@dataclass
class EncodingProgress:
    """ffmpeg status at one point of its stderr stream.

    Built from a single status line; fields missing from that line keep
    their zero value.
    """

    filename: str = ""
    frame: int = 0
    fps: int = 0
    time: str = ""          # "HH:MM:SS.ff"
    size: int = 0           # kB
    bitrate: float = 0.0    # kbit/s
    speed: float = 0.0      # x realtime
    progress: float = 0.0   # percent, filled in by callers that know the duration
    status: str = STATUS_PROCESSING

    @property
    def elapsed_seconds(self) -> float:
        """``time`` converted to seconds (0.0 if empty or malformed)."""
        if not self.time:
            return 0.0
        try:
            hours, minutes, seconds = self.time.split(":")
            return int(hours) * 3600 + int(minutes) * 60 + float(seconds)
        except ValueError:
            return 0.0

    def to_dict(self) -> dict:
        return asdict(self)
