"""Run ffmpeg over a batch of input files.

Files are encoded one after another. Each file goes through
pending → validating → single_pass | pass1 → pass2 → verifying → completed,
and the first error marks it failed and aborts the rest of the batch.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from pathlib import Path
from typing import Callable, Iterable

from batch_encoder.infrastructure.ffmpeg_runner import FFmpegRunner, get_ffmpeg_runner
from batch_encoder.models.encoding_job import FileJob, JobState
from batch_encoder.models.encoding_options import EncodingOptions
from batch_encoder.models.errors import (
    EncodingError,
    InputNotFoundError,
    OutputDirectoryError,
    OutputExistsError,
    OutputMissingError,
    SubprocessFailure,
    ToolNotFoundError,
)
from batch_encoder.models.progress import STATUS_COMPLETED, STATUS_PROCESSING, EncodingProgress
from batch_encoder.services.command_builder import (
    build_2pass_args,
    build_ffmpeg_args,
    make_pass_log_path,
    pass_log_artifacts,
)
from batch_encoder.services.progress_parser import ProgressReader
from batch_encoder.utils.config import PREFLIGHT_TIMEOUT_SEC

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[EncodingProgress], None]

_PHASE_LABELS = {
    JobState.SINGLE_PASS: "encoding",
    JobState.PASS1: "first pass",
    JobState.PASS2: "second pass",
}


class Encoder:
    """Supervises ffmpeg processes for one batch at a time."""

    def __init__(self, runner: FFmpegRunner | None = None):
        self._runner = runner or get_ffmpeg_runner()
        self._process: subprocess.Popen | None = None
        self._stop_requested = False
        # Guards _process and _stop_requested between spawn and terminate()
        self._lock = threading.Lock()
        self.jobs: list[FileJob] = []

    def start_encoding(
        self,
        paths: Iterable[Path | str],
        options: EncodingOptions,
        progress_callback: ProgressCallback,
    ) -> None:
        """Encode every path with *options*.

        *progress_callback* is called from a background thread while ffmpeg
        runs, and from the calling thread for the per-file "processing" and
        "completed" events.

        Raises:
            ConfigurationError: options rejected; nothing was started.
            PreconditionError: ffmpeg missing, or a file cannot be encoded.
            SubprocessFailure: ffmpeg failed; ``stderr`` holds its output.
            PostconditionError: ffmpeg succeeded but wrote no output.
        """
        self.jobs = []
        try:
            normalized = options.validate()
            self._check_ffmpeg()

            self.jobs = [FileJob(input_path=Path(p)) for p in paths]
            for job in self.jobs:
                self._encode_file(job, normalized, progress_callback)
        finally:
            # Cleared after the run so a stop requested before it still applies
            with self._lock:
                self._stop_requested = False

    def terminate(self) -> None:
        """Stop the running ffmpeg process and start no new one. The job then fails.

        Also honored when called before :meth:`start_encoding`.
        """
        with self._lock:
            self._stop_requested = True
            process = self._process
            if process is not None and process.poll() is None:
                logger.info("Terminating ffmpeg")
                process.terminate()

    # ------------------------------------------------------------ preflight

    def _check_ffmpeg(self) -> None:
        if not self._runner.is_available():
            raise ToolNotFoundError("FFmpeg is not installed", path=self._runner.ffmpeg_path)
        try:
            version = self._runner.version(timeout=PREFLIGHT_TIMEOUT_SEC)
        except (OSError, subprocess.SubprocessError) as e:
            raise ToolNotFoundError(
                "FFmpeg could not be executed", path=self._runner.ffmpeg_path, cause=e
            ) from e
        logger.info(f"Using {version or self._runner.ffmpeg_path}")

    def _check_preconditions(self, job: FileJob) -> None:
        if not job.input_path.exists():
            raise InputNotFoundError("input file not found", path=job.input_path)

        output_dir = job.output_path.parent
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(
                "failed to create output directory", path=output_dir, cause=e
            ) from e
        if not os.access(output_dir, os.W_OK):
            raise OutputDirectoryError("output directory is not writable", path=output_dir)

        # Never overwrite an existing file
        if job.output_path.exists():
            raise OutputExistsError("output file already exists", path=job.output_path)

    # ------------------------------------------------------------ per file

    def _encode_file(
        self,
        job: FileJob,
        options: EncodingOptions,
        progress_callback: ProgressCallback,
    ) -> None:
        job.output_path = options.output_path_for(job.input_path)
        logger.info(f"Encoding {job.input_path} -> {job.output_path}")

        try:
            self._set_state(job, JobState.VALIDATING)
            progress_callback(EncodingProgress(filename=job.filename, status=STATUS_PROCESSING))
            self._check_preconditions(job)

            if options.is_two_pass:
                self._run_two_pass(job, options, progress_callback)
            else:
                self._run_single_pass(job, options, progress_callback)

            self._set_state(job, JobState.VERIFYING)
            if not job.output_path.exists():
                raise OutputMissingError("encoded file not found", path=job.output_path)
        except EncodingError as e:
            if e.input_path is None:
                e.input_path = job.input_path
            job.state = JobState.FAILED
            job.error_message = str(e)
            logger.error(f"Encoding failed for {job.input_path}: {e.message}")
            raise

        self._set_state(job, JobState.COMPLETED)
        progress_callback(EncodingProgress(filename=job.filename, status=STATUS_COMPLETED))
        logger.info(f"Encoding completed: {job.output_path}")

    def _run_single_pass(
        self,
        job: FileJob,
        options: EncodingOptions,
        progress_callback: ProgressCallback,
    ) -> None:
        self._set_state(job, JobState.SINGLE_PASS)
        args = build_ffmpeg_args(options, job.input_path)
        args.append(str(job.output_path))
        self._run_ffmpeg_command(args, job, progress_callback)

    def _run_two_pass(
        self,
        job: FileJob,
        options: EncodingOptions,
        progress_callback: ProgressCallback,
    ) -> None:
        pass_log = make_pass_log_path()
        pass1_args, pass2_args = build_2pass_args(options, job.input_path, pass_log)
        pass2_args.append(str(job.output_path))

        try:
            self._set_state(job, JobState.PASS1)
            self._run_ffmpeg_command(pass1_args, job, progress_callback)
            self._set_state(job, JobState.PASS2)
            self._run_ffmpeg_command(pass2_args, job, progress_callback)
        finally:
            _remove_pass_logs(pass_log)

    def _run_ffmpeg_command(
        self,
        args: list[str],
        job: FileJob,
        progress_callback: ProgressCallback,
    ) -> None:
        """Run one ffmpeg phase to completion while a thread drains its stderr."""
        phase = job.state
        label = _PHASE_LABELS.get(phase, phase.value)
        reader = ProgressReader(progress_callback, job.filename)

        with self._lock:
            if self._stop_requested:
                raise SubprocessFailure(f"{label} cancelled", path=job.input_path, phase=phase.value)

            try:
                process = self._runner.run_async(
                    args,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                )
            except OSError as e:
                raise SubprocessFailure(
                    f"{label} failed: could not start ffmpeg",
                    path=job.input_path, cause=e, phase=phase.value,
                ) from e
            self._process = process

        drain = threading.Thread(
            target=reader.read_progress,
            args=(process.stderr,),
            name=f"ffmpeg-stderr-{job.filename}",
            daemon=True,
        )
        drain.start()
        try:
            returncode = process.wait()
        finally:
            # Reader ends at EOF, which follows process exit
            drain.join()
            process.stderr.close()
            with self._lock:
                self._process = None

        if returncode != 0:
            raise SubprocessFailure(
                f"{label} failed: ffmpeg exited with code {returncode}",
                path=job.input_path,
                returncode=returncode,
                phase=phase.value,
                stderr=reader.diagnostic_text,
            )

    @staticmethod
    def _set_state(job: FileJob, state: JobState) -> None:
        logger.debug(f"{job.filename}: {job.state.value} -> {state.value}")
        job.state = state


def _remove_pass_logs(pass_log: Path) -> None:
    for artifact in pass_log_artifacts(pass_log):
        try:
            artifact.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove pass log {artifact}: {e}")
