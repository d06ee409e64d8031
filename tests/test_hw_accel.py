"""Tests for encoder availability detection."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from batch_encoder.utils import hw_accel
from batch_encoder.utils.hw_accel import get_available_codecs, has_intel_gpu, has_nvidia_gpu

ENCODERS_ALL = """Encoders:
 V....D libx264              libx264 H.264 / AVC / MPEG-4 AVC
 V....D h264_nvenc           NVIDIA NVENC H.264 encoder
 V....D hevc_nvenc           NVIDIA NVENC hevc encoder
 V....D h264_qsv             H.264 (Intel Quick Sync Video acceleration)
 V....D hevc_qsv             HEVC (Intel Quick Sync Video acceleration)
 V....D h264_videotoolbox    VideoToolbox H.264 Encoder
 V....D hevc_videotoolbox    VideoToolbox H.265 Encoder
 V....D libvpx               libvpx VP8
 V....D libvpx-vp9           libvpx VP9
"""


def _runner(stdout: str = ENCODERS_ALL) -> MagicMock:
    runner = MagicMock()
    runner.run.return_value = MagicMock(stdout=stdout)
    return runner


def _names(codecs) -> list[str]:
    return [c.name for c in codecs]


class TestGetAvailableCodecs:
    @patch.object(hw_accel, "has_intel_gpu", return_value=False)
    @patch.object(hw_accel, "has_nvidia_gpu", return_value=True)
    def test_linux_with_nvidia(self, _nv, _intel):
        with patch.object(hw_accel.sys, "platform", "linux"):
            codecs = get_available_codecs(_runner())
        assert _names(codecs) == ["h264", "hevc", "hevc_nvenc", "h264_nvenc", "vp8", "vp9"]
        assert codecs[2].hardware == "nvidia"
        assert codecs[-1].formats == ["webm"]

    @patch.object(hw_accel, "has_intel_gpu", return_value=True)
    @patch.object(hw_accel, "has_nvidia_gpu", return_value=False)
    def test_windows_with_intel(self, _nv, _intel):
        with patch.object(hw_accel.sys, "platform", "win32"):
            codecs = get_available_codecs(_runner())
        assert "h264_qsv" in _names(codecs)
        assert "h264_nvenc" not in _names(codecs)

    def test_macos_uses_videotoolbox(self):
        with patch.object(hw_accel.sys, "platform", "darwin"):
            codecs = get_available_codecs(_runner())
        assert _names(codecs)[:4] == ["h264", "hevc", "hevc_videotoolbox", "h264_videotoolbox"]

    @patch.object(hw_accel, "has_intel_gpu", return_value=False)
    @patch.object(hw_accel, "has_nvidia_gpu", return_value=True)
    def test_gpu_without_ffmpeg_support(self, _nv, _intel):
        with patch.object(hw_accel.sys, "platform", "linux"):
            codecs = get_available_codecs(_runner(" V....D libx264  H.264\n"))
        assert _names(codecs) == ["h264", "hevc"]

    @pytest.mark.parametrize("error", [
        FileNotFoundError("ffmpeg"),
        subprocess.TimeoutExpired("ffmpeg", 5),
        subprocess.CalledProcessError(1, "ffmpeg"),
    ])
    def test_encoder_list_failure_returns_baseline(self, error):
        runner = MagicMock()
        runner.run.side_effect = error
        assert _names(get_available_codecs(runner)) == ["h264", "hevc"]

    def test_results_are_independent_copies(self):
        with patch.object(hw_accel.sys, "platform", "darwin"):
            first = get_available_codecs(_runner())
            first[0].formats.append("mkv")
            second = get_available_codecs(_runner())
        assert second[0].formats == ["mp4"]

    def test_to_dict(self):
        with patch.object(hw_accel.sys, "platform", "darwin"):
            info = get_available_codecs(_runner())[0]
        assert info.to_dict() == {
            "name": "h264",
            "displayName": "H.264 (CPU)",
            "hardware": "cpu",
            "formats": ["mp4"],
        }


class TestGpuDetection:
    def test_nvidia_on_linux(self):
        with patch.object(hw_accel.sys, "platform", "linux"), \
                patch.object(hw_accel, "_probe_output", return_value="01:00.0 VGA: NVIDIA Corporation GA104"):
            assert has_nvidia_gpu()

    def test_nvidia_on_windows_needs_nvidia_smi(self):
        with patch.object(hw_accel.sys, "platform", "win32"), \
                patch.object(hw_accel, "_probe_output", return_value=None):
            assert not has_nvidia_gpu()

    def test_intel_needs_graphics(self):
        with patch.object(hw_accel.sys, "platform", "linux"), \
                patch.object(hw_accel, "_probe_output", return_value="00:1f.3 Audio device: Intel Corporation"):
            assert not has_intel_gpu()
        with patch.object(hw_accel.sys, "platform", "linux"), \
                patch.object(hw_accel, "_probe_output", return_value="00:02.0 VGA: Intel Corporation UHD Graphics 630"):
            assert has_intel_gpu()

    def test_other_platforms(self):
        with patch.object(hw_accel.sys, "platform", "darwin"):
            assert not has_nvidia_gpu()
            assert not has_intel_gpu()

    def test_probe_timeout_is_none(self):
        with patch("batch_encoder.utils.hw_accel.subprocess.run",
                   side_effect=subprocess.TimeoutExpired("lspci", 2)):
            assert hw_accel._probe_output(["lspci"]) is None
