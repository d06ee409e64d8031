"""Encoding options model (pure Python, no Qt dependency)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from batch_encoder.models.codec import (
    SUPPORTED_FORMATS,
    QualityMode,
    get_codec_settings,
)
from batch_encoder.models.errors import (
    ConfigurationError,
    InvalidTwoPassConfigError,
    QualityOutOfRangeError,
    UnsupportedCodecError,
    UnsupportedFormatError,
)

__all__ = ["EncodingOptions", "QualityMode"]

# dataclass field -> key used by the front-end payload
_WIRE_KEYS = {
    "video_format": "videoformat",
    "video_codec": "videocodec",
    "quality_mode": "qualitymode",
    "quality_value": "qualityvalue",
    "use_2pass": "use2pass",
    "is_resize": "isresize",
    "width": "width",
    "height": "height",
    "output_path": "outputpath",
    "prefix": "prefix",
    "postfix": "postfix",
    "audio_codec": "audiocodec",
    "audio_bitrate": "audiobitrate",
    "audio_samplerate": "audiosamplerate",
}


@dataclass
class EncodingOptions:
    """Per-job encode settings, applied to every input file of the job."""

    video_format: str = "mp4"
    video_codec: str = "h264"
    quality_mode: QualityMode = QualityMode.CRF
    quality_value: int = 0      # 0 = use the codec's default
    use_2pass: bool = False     # bitrate mode only

    # Resize
    is_resize: bool = False
    width: int = 0
    height: int = 0

    # Output naming
    output_path: str = ""       # explicit path wins over prefix/postfix
    prefix: str = ""
    postfix: str = ""

    # Audio (empty codec = stream copy)
    audio_codec: str = ""
    audio_bitrate: int = 0      # kbps
    audio_samplerate: int = 0   # Hz

    @property
    def wants_resize(self) -> bool:
        return self.is_resize and self.width > 0 and self.height > 0

    @property
    def is_two_pass(self) -> bool:
        return self.use_2pass and self.quality_mode == QualityMode.BITRATE

    @property
    def file_extension(self) -> str:
        return f".{self.video_format}"

    def validate(self) -> EncodingOptions:
        """Check the options and return a normalized copy.

        A ``quality_value`` of 0 is replaced by the codec's default mode and
        value. ``self`` is never modified, so a job normalizes exactly once
        and hands the returned copy to every file.

        Raises:
            ConfigurationError: one of its subclasses, naming the bad field.
        """
        codecs = SUPPORTED_FORMATS.get(self.video_format)
        if codecs is None:
            raise UnsupportedFormatError(f"unsupported video format: {self.video_format}")

        if self.video_codec not in codecs:
            raise UnsupportedCodecError(
                f"unsupported codec {self.video_codec} for format {self.video_format}"
            )

        normalized = replace(self)
        settings = get_codec_settings(self.video_codec)
        # Codecs without a settings entry skip range validation
        if settings is not None:
            if self.quality_value == 0:
                normalized.quality_mode = settings.default_mode
                normalized.quality_value = settings.default_value
            elif not settings.contains(self.quality_value):
                raise QualityOutOfRangeError(
                    f"quality value {self.quality_value} out of range "
                    f"[{settings.min_value}-{settings.max_value}] "
                    f"for codec {self.video_codec}"
                )

        if normalized.use_2pass and normalized.quality_mode != QualityMode.BITRATE:
            raise InvalidTwoPassConfigError(
                "2-pass encoding is only available with bitrate mode"
            )

        return normalized

    def output_path_for(self, input_path: Path | str) -> Path:
        """Where the encode of *input_path* is written. No filesystem access."""
        if self.output_path:
            return Path(self.output_path)

        source = Path(input_path)
        name = f"{self.prefix}{source.stem}{self.postfix}{self.file_extension}"
        return source.parent / name

    # ------------------------------------------------------------ payload

    def to_dict(self) -> dict:
        data = {wire: getattr(self, attr) for attr, wire in _WIRE_KEYS.items()}
        data["qualitymode"] = QualityMode(self.quality_mode).value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> EncodingOptions:
        """Build options from a front-end payload; missing keys keep defaults."""
        kwargs = {}
        for attr, wire in _WIRE_KEYS.items():
            if wire in data and data[wire] is not None:
                kwargs[attr] = data[wire]

        mode = kwargs.get("quality_mode")
        if mode is not None:
            try:
                kwargs["quality_mode"] = QualityMode(mode or QualityMode.CRF.value)
            except ValueError as e:
                raise ConfigurationError(f"unknown quality mode: {mode}", cause=e) from e

        for attr in ("quality_value", "width", "height", "audio_bitrate", "audio_samplerate"):
            if attr in kwargs:
                try:
                    kwargs[attr] = int(kwargs[attr])
                except (TypeError, ValueError) as e:
                    raise ConfigurationError(f"{_WIRE_KEYS[attr]} must be an integer", cause=e) from e

        for attr in ("use_2pass", "is_resize"):
            if attr in kwargs:
                value = kwargs[attr]
                # Strings such as "false" are rejected rather than read as truthy
                if isinstance(value, int) and value in (0, 1):
                    kwargs[attr] = bool(value)
                else:
                    raise ConfigurationError(f"{_WIRE_KEYS[attr]} must be a boolean")

        return cls(**kwargs)
