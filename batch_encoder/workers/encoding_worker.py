"""Background worker for batch encoding."""

from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QObject, Signal

from batch_encoder.infrastructure.ffmpeg_runner import FFmpegRunner
from batch_encoder.models.encoding_options import EncodingOptions
from batch_encoder.models.errors import EncodingError
from batch_encoder.models.progress import EncodingProgress
from batch_encoder.services.encoder import Encoder

logger = logging.getLogger(__name__)


class EncodingWorker(QObject):
    """Runs an encoding job in a background thread.

    Signals:
        progress(EncodingProgress): every snapshot, including the per-file
            "processing" / "completed" events.
        finished(int): number of files encoded, on success.
        error(str): error message on failure or cancellation.
    """

    progress = Signal(object)
    finished = Signal(int)
    error = Signal(str)

    def __init__(
        self,
        paths: list[Path],
        options: EncodingOptions,
        runner: FFmpegRunner | None = None,
    ):
        super().__init__()
        self._paths = [Path(p) for p in paths]
        self._options = options
        self._encoder = Encoder(runner)
        self._cancelled = False

    def cancel(self) -> None:
        """Stop the running ffmpeg process; the job ends with an error."""
        self._cancelled = True
        self._encoder.terminate()

    def _on_progress(self, progress: EncodingProgress) -> None:
        # Called from the stderr reader thread; Qt queues the signal
        self.progress.emit(progress)

    def run(self) -> None:
        try:
            self._encoder.start_encoding(self._paths, self._options, self._on_progress)
        except EncodingError as e:
            if self._cancelled:
                self.error.emit(f"Encoding cancelled: {e.message}")
            else:
                self.error.emit(str(e))
            return
        except Exception as e:
            logger.exception(f"Error in EncodingWorker: {e}")
            self.error.emit(str(e))
            return
        self.finished.emit(len(self._paths))
