"""BatchEncoder command-line entry point.

Encodes the given files (directories are scanned for videos) with one set
of options and prints progress. Exit status is 0 on success, 1 on error.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QThread

from batch_encoder.infrastructure.ffmpeg_runner import FFmpegRunner
from batch_encoder.models.codec import SUPPORTED_FORMATS, QualityMode
from batch_encoder.models.encoding_options import EncodingOptions
from batch_encoder.models.errors import ConfigurationError
from batch_encoder.models.progress import STATUS_COMPLETED, EncodingProgress
from batch_encoder.services.settings_manager import SettingsManager
from batch_encoder.services.video_probe import find_video_files
from batch_encoder.utils.config import APP_NAME, APP_VERSION, ORG_NAME
from batch_encoder.utils.hw_accel import get_available_codecs
from batch_encoder.workers.encoding_worker import EncodingWorker


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="batch-encoder", description="Batch-convert videos with FFmpeg.")
    parser.add_argument("paths", nargs="*", help="video files or directories")
    parser.add_argument("--options", type=Path, help="JSON file with an encoding options payload")
    parser.add_argument("--last", action="store_true", help="start from the options of the last successful job")
    parser.add_argument("--format", dest="video_format", choices=sorted(SUPPORTED_FORMATS))
    parser.add_argument("--codec", dest="video_codec")
    parser.add_argument("--mode", dest="quality_mode", choices=[m.value for m in QualityMode])
    parser.add_argument("--quality", dest="quality_value", type=int, help="CRF value or kbps (0 = codec default)")
    parser.add_argument("--two-pass", dest="use_2pass", action="store_true", default=None)
    parser.add_argument("--size", metavar="WxH", help="resize output")
    parser.add_argument("--output", dest="output_path")
    parser.add_argument("--prefix")
    parser.add_argument("--postfix")
    parser.add_argument("--audio-codec", dest="audio_codec")
    parser.add_argument("--audio-bitrate", dest="audio_bitrate", type=int)
    parser.add_argument("--audio-samplerate", dest="audio_samplerate", type=int)
    parser.add_argument("--ffmpeg", help="path to the ffmpeg binary (saved as preference)")
    parser.add_argument("--list-codecs", action="store_true", help="print encoders available here and exit")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser


def _resolve_options(args: argparse.Namespace, settings: SettingsManager) -> EncodingOptions:
    if args.options:
        options = EncodingOptions.from_dict(json.loads(args.options.read_text(encoding="utf-8")))
    elif args.last:
        options = settings.get_last_options()
    else:
        options = EncodingOptions()

    for attr in (
        "video_format", "video_codec", "quality_value", "use_2pass", "output_path",
        "prefix", "postfix", "audio_codec", "audio_bitrate", "audio_samplerate",
    ):
        value = getattr(args, attr)
        if value is not None:
            setattr(options, attr, value)
    if args.quality_mode:
        options.quality_mode = QualityMode(args.quality_mode)
    if args.size:
        try:
            width, height = (int(v) for v in args.size.lower().split("x"))
        except ValueError as e:
            raise ConfigurationError(f"invalid size: {args.size}", cause=e) from e
        options.is_resize, options.width, options.height = True, width, height
    return options


def _print_progress(progress: EncodingProgress) -> None:
    if progress.status == STATUS_COMPLETED:
        print(f"\n{progress.filename}: completed", flush=True)
    elif progress.frame or progress.time:
        print(
            f"\r{progress.filename}: frame={progress.frame} fps={progress.fps} "
            f"time={progress.time} bitrate={progress.bitrate}kbits/s speed={progress.speed}x",
            end="", flush=True,
        )
    else:
        print(f"{progress.filename}: started", flush=True)


def main() -> int:
    args = _build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    QCoreApplication.setOrganizationName(ORG_NAME)
    QCoreApplication.setApplicationName(APP_NAME)
    app = QCoreApplication(sys.argv)

    settings = SettingsManager()
    if args.ffmpeg:
        settings.set_ffmpeg_path(args.ffmpeg)
    runner = FFmpegRunner(ffmpeg_path=settings.get_ffmpeg_path())

    if args.list_codecs:
        for info in get_available_codecs(runner):
            print(f"{info.name:20} {info.display_name:30} {','.join(info.formats)}")
        return 0

    try:
        options = _resolve_options(args, settings)
        paths = [video for path in args.paths for video in find_video_files(path)]
    except (ConfigurationError, OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    if not paths:
        print("error: no video files given", file=sys.stderr)
        return 1

    worker = EncodingWorker(paths, options, runner=runner)
    thread = QThread()
    worker.moveToThread(thread)
    outcome: dict[str, str] = {}

    def _on_finished(count: int) -> None:
        outcome["done"] = f"{count} file(s) encoded"
        thread.quit()

    def _on_error(message: str) -> None:
        outcome["error"] = message
        thread.quit()

    worker.progress.connect(_print_progress)
    worker.finished.connect(_on_finished)
    worker.error.connect(_on_error)
    thread.started.connect(worker.run)
    thread.finished.connect(app.quit)
    thread.start()
    app.exec()
    thread.wait()

    if "error" in outcome:
        print(f"\nerror: {outcome['error']}", file=sys.stderr)
        return 1
    settings.set_last_options(options)
    if options.output_path:
        settings.set_last_output_dir(str(Path(options.output_path).parent))
    print(outcome.get("done", ""))
    return 0


if __name__ == "__main__":
    sys.exit(main())
