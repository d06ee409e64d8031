"""Tests for ffmpeg stderr tokenizing and progress extraction."""

from __future__ import annotations

import io

import pytest

from batch_encoder.models.progress import EncodingProgress
from batch_encoder.services.progress_parser import (
    LineTokenizer,
    ProgressReader,
    parse_progress_line,
)

STATUS_LINE = (
    "frame=  240 fps= 48 q=28.0 size=    1024kB time=00:00:10.01 "
    "bitrate= 838.1kbits/s speed=1.92x"
)


class _ChunkedStream:
    """Stream returning predefined chunks, like a pipe delivering partial writes."""

    def __init__(self, chunks: list[bytes]):
        self._chunks = list(chunks)

    def read(self, size: int = -1) -> bytes:
        return self._chunks.pop(0) if self._chunks else b""


class TestLineTokenizer:
    def test_splits_on_carriage_return_and_newline(self):
        tok = LineTokenizer()
        assert tok.feed(b"a\rb\nc") == [b"a", b"b"]
        assert tok.pending == b"c"

    def test_waits_for_boundary(self):
        tok = LineTokenizer()
        assert tok.feed(b"frame=") == []
        assert tok.feed(b"  10") == []
        assert tok.feed(b" fps=30\r") == [b"frame=  10 fps=30"]
        assert tok.pending == b""

    def test_close_flushes_remainder(self):
        tok = LineTokenizer()
        tok.feed(b"tail without newline")
        assert tok.close() == [b"tail without newline"]
        assert tok.close() == []

    def test_close_on_empty_buffer(self):
        tok = LineTokenizer()
        tok.feed(b"line\n")
        assert tok.close() == []

    def test_crlf_gives_empty_token(self):
        tok = LineTokenizer()
        assert tok.feed(b"x\r\ny\n") == [b"x", b"", b"y"]

    def test_byte_at_a_time(self):
        tok = LineTokenizer()
        tokens = []
        for byte in b"one\rtwo\n":
            tokens += tok.feed(bytes([byte]))
        assert tokens == [b"one", b"two"]


class TestParseProgressLine:
    def test_full_status_line(self):
        p = parse_progress_line(STATUS_LINE, "clip.mov")
        assert p == EncodingProgress(
            filename="clip.mov",
            frame=240,
            fps=48,
            time="00:00:10.01",
            size=1024,
            bitrate=838.1,
            speed=1.92,
            status="processing",
        )

    def test_newer_ffmpeg_units(self):
        p = parse_progress_line(
            "frame=   12 fps=0.0 q=0.0 size=       0KiB time=00:00:00.40 bitrate=   0.0kbits/s speed=0.8x",
            "a.mp4",
        )
        assert p.size == 0
        assert p.fps == 0
        assert p.speed == 0.8

    def test_integer_speed(self):
        assert parse_progress_line("time=00:00:01.00 speed=   2x", "a").speed == 2.0

    def test_fractional_fps_truncated(self):
        assert parse_progress_line("frame= 5 fps=29.97", "a").fps == 29

    @pytest.mark.parametrize("line", [
        "ffmpeg version 6.1 Copyright (c) 2000-2023 the FFmpeg developers",
        "  Stream #0:0(und): Video: h264 (High), yuv420p, 1920x1080, 30 fps",
        "Press [q] to stop, [?] for help",
        "frame=    0 fps=0.0 q=0.0 size=       0kB",
    ])
    def test_chatter_is_dropped(self, line):
        assert parse_progress_line(line, "a.mp4") is None

    def test_time_alone_is_enough(self):
        p = parse_progress_line("size=N/A time=00:01:02.50 bitrate=N/A", "a")
        assert p.time == "00:01:02.50"
        assert p.frame == 0
        assert p.elapsed_seconds == pytest.approx(62.5)

    def test_never_reports_completion(self):
        p = parse_progress_line(STATUS_LINE + " Lsize=1024kB", "a")
        assert p.status == "processing"


class TestProgressReader:
    def test_two_writes_give_two_snapshots(self):
        events: list[EncodingProgress] = []
        reader = ProgressReader(events.append, "clip.mov")
        reader.read_progress(_ChunkedStream([
            b"frame=  10 fps= 30\r",
            b"time=00:00:05.00 bitrate=500.0kbits/s speed=1.0x\n",
        ]))

        assert len(events) == 2
        first, second = events
        assert (first.frame, first.fps, first.time) == (10, 30, "")
        assert second.time == "00:00:05.00"
        assert second.bitrate == 500.0
        assert second.speed == 1.0
        assert (second.frame, second.fps) == (0, 0)

    def test_line_split_across_chunks(self):
        events: list[EncodingProgress] = []
        reader = ProgressReader(events.append, "clip.mov")
        reader.read_progress(_ChunkedStream([b"frame=  1", b"23 fps=2", b"5 time=00:00:0", b"1.00\r"]))
        assert len(events) == 1
        assert events[0].frame == 123
        assert events[0].fps == 25
        assert events[0].time == "00:00:01.00"

    def test_final_line_without_terminator(self):
        events: list[EncodingProgress] = []
        ProgressReader(events.append, "a").read_progress(io.BytesIO(b"frame= 7 fps=1"))
        assert [e.frame for e in events] == [7]

    def test_order_preserved_and_banner_dropped(self):
        data = (
            b"ffmpeg version 6.0\nInput #0, mov,mp4\n"
            b"frame=   1 fps=0.0\rframe=   2 fps=0.0\rframe=   3 fps=0.0\r\n"
            b"video:100kB audio:10kB\n"
        )
        events: list[EncodingProgress] = []
        reader = ProgressReader(events.append, "a")
        reader.read_progress(io.BytesIO(data))
        assert [e.frame for e in events] == [1, 2, 3]
        assert reader.last_progress.frame == 3

    def test_snapshots_are_not_merged(self):
        events: list[EncodingProgress] = []
        ProgressReader(events.append, "a").read_progress(
            io.BytesIO(b"frame= 5 fps=10 time=00:00:01.00\rtime=00:00:02.00\r")
        )
        assert events[1].frame == 0
        assert events[1].fps == 0

    def test_diagnostic_text_keeps_output(self):
        reader = ProgressReader(lambda p: None, "a")
        reader.read_progress(io.BytesIO(b"Unknown encoder 'libfoo'\nConversion failed!\n"))
        assert reader.diagnostic_text == "Unknown encoder 'libfoo'\nConversion failed!"
        assert reader.last_progress is None

    def test_diagnostic_text_is_bounded(self):
        reader = ProgressReader(lambda p: None, "a", tail_lines=2)
        reader.read_progress(io.BytesIO(b"one\ntwo\nthree\n"))
        assert reader.diagnostic_text == "two\nthree"

    def test_invalid_utf8_is_replaced(self):
        reader = ProgressReader(lambda p: None, "a")
        reader.read_progress(io.BytesIO(b"bad \xff byte\n"))
        assert "�" in reader.diagnostic_text

    def test_callback_error_does_not_stop_draining(self):
        calls = []

        def callback(progress):
            calls.append(progress.frame)
            raise RuntimeError("ui gone")

        stream = io.BytesIO(b"frame= 1\rframe= 2\rframe= 3\r")
        reader = ProgressReader(callback, "a")
        reader.read_progress(stream)
        assert calls == [1, 2, 3]
        assert stream.read() == b""
