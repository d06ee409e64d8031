"""Codec tables: supported container/codec pairs and per-codec quality settings.

Both tables are built once at import time and exposed read-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class QualityMode(str, Enum):
    """Which ffmpeg rate-control flag the quality value feeds."""

    CRF = "crf"
    BITRATE = "bitrate"


# Container -> codecs ffmpeg may be asked to use for it
SUPPORTED_FORMATS = MappingProxyType({
    "mp4": (
        "h264", "h264_nvenc", "h264_qsv",
        "hevc", "hevc_nvenc", "hevc_qsv", "hevc_videotoolbox",
    ),
    "webm": ("vp8", "vp9"),
})


@dataclass(frozen=True)
class CodecSettings:
    """Quality defaults and accepted range for one base codec."""

    default_mode: QualityMode
    min_value: int
    max_value: int
    default_value: int

    def contains(self, value: int) -> bool:
        return self.min_value <= value <= self.max_value


CODEC_SETTINGS = MappingProxyType({
    "h264": CodecSettings(QualityMode.CRF, 0, 51, 23),
    "hevc": CodecSettings(QualityMode.CRF, 0, 51, 28),
    "vp9": CodecSettings(QualityMode.CRF, 0, 63, 31),
})


def base_codec(codec: str) -> str:
    """Strip a hardware suffix: ``h264_nvenc`` -> ``h264``."""
    return codec.split("_", 1)[0]


def get_codec_settings(codec: str) -> CodecSettings | None:
    """Settings for *codec* (hardware variants share the base entry), or None."""
    return CODEC_SETTINGS.get(base_codec(codec))


@dataclass
class CodecInfo:
    """One encoder the front-end may offer to the user."""

    name: str               # ffmpeg encoder id, e.g. "h264_nvenc"
    display_name: str       # "H.264 (NVIDIA GPU)"
    hardware: str           # cpu / nvidia / intel / apple
    formats: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "hardware": self.hardware,
            "formats": list(self.formats),
        }
