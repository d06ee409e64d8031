"""Parse ffmpeg's stderr into EncodingProgress snapshots.

ffmpeg redraws its status line with ``\\r`` and prints everything else with
``\\n``, and the pipe hands over arbitrary chunks, so lines are cut on
either byte and a trailing partial line waits for the next chunk.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from typing import BinaryIO, Callable

from batch_encoder.models.progress import STATUS_PROCESSING, EncodingProgress
from batch_encoder.services.ffmpeg_logger import log_ffmpeg_line
from batch_encoder.utils.config import DIAGNOSTIC_TAIL_LINES, STDERR_CHUNK_SIZE

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(rb"[\r\n]")

_FRAME_RE = re.compile(r"frame=\s*(\d+)")
_FPS_RE = re.compile(r"fps=\s*(\d+)")
_TIME_RE = re.compile(r"time=(\d{2}:\d{2}:\d{2}\.\d{2})")
_SIZE_RE = re.compile(r"size=\s*(\d+)(?:kB|KiB)")
_BITRATE_RE = re.compile(r"bitrate=\s*(\d+\.\d+)kbits/s")
_SPEED_RE = re.compile(r"speed=\s*(\d+(?:\.\d+)?)x")


class LineTokenizer:
    """Incremental splitter for a byte stream delimited by ``\\r`` or ``\\n``."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes received after the last line break."""
        return bytes(self._buffer)

    def feed(self, data: bytes) -> list[bytes]:
        """Add *data* and return every line it completes (without the break)."""
        self._buffer.extend(data)
        tokens: list[bytes] = []
        start = 0
        while True:
            match = _LINE_BREAK.search(self._buffer, start)
            if match is None:
                break
            tokens.append(bytes(self._buffer[start:match.start()]))
            start = match.end()
        del self._buffer[:start]
        return tokens

    def close(self) -> list[bytes]:
        """End of stream: whatever is left is the final line."""
        if not self._buffer:
            return []
        token = bytes(self._buffer)
        self._buffer.clear()
        return [token]


def parse_progress_line(line: str, filename: str) -> EncodingProgress | None:
    """Extract a snapshot from one status line.

    Every field is optional. Returns None for lines with neither a frame
    count nor a timestamp (banner, stream info, warnings).
    """
    progress = EncodingProgress(filename=filename, status=STATUS_PROCESSING)

    frame = _FRAME_RE.search(line)
    if frame:
        progress.frame = int(frame.group(1))
    fps = _FPS_RE.search(line)
    if fps:
        progress.fps = int(fps.group(1))
    elapsed = _TIME_RE.search(line)
    if elapsed:
        progress.time = elapsed.group(1)
    size = _SIZE_RE.search(line)
    if size:
        progress.size = int(size.group(1))
    bitrate = _BITRATE_RE.search(line)
    if bitrate:
        progress.bitrate = float(bitrate.group(1))
    speed = _SPEED_RE.search(line)
    if speed:
        progress.speed = float(speed.group(1))

    if progress.time or progress.frame > 0:
        return progress
    return None


class ProgressReader:
    """Drains one ffmpeg stderr stream, reporting progress through *callback*.

    Meant to run on its own thread for the lifetime of one process: it
    returns when the stream reaches EOF. Besides the snapshots it keeps the
    last ``tail_lines`` lines of output for error reports.
    """

    def __init__(
        self,
        callback: Callable[[EncodingProgress], None],
        filename: str,
        tail_lines: int = DIAGNOSTIC_TAIL_LINES,
    ):
        self._callback = callback
        self._filename = filename
        self._tail: deque[str] = deque(maxlen=tail_lines)
        self.last_progress: EncodingProgress | None = None

    @property
    def diagnostic_text(self) -> str:
        return "\n".join(self._tail)

    def read_progress(self, stream: BinaryIO) -> None:
        tokenizer = LineTokenizer()
        read = getattr(stream, "read1", stream.read)
        while True:
            chunk = read(STDERR_CHUNK_SIZE)
            if not chunk:
                break
            for token in tokenizer.feed(chunk):
                self._handle_line(token)
        for token in tokenizer.close():
            self._handle_line(token)

    def _handle_line(self, token: bytes) -> None:
        line = token.decode("utf-8", errors="replace")
        if not line.strip():
            return

        log_ffmpeg_line(line)
        self._tail.append(line)

        progress = parse_progress_line(line, self._filename)
        if progress is None:
            return
        try:
            self._callback(progress)
        except Exception:
            # Keep draining; a stalled pipe would block ffmpeg
            logger.exception(f"Progress callback failed for {self._filename}")
        self.last_progress = progress
