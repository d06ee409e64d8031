"""Infrastructure layer: external tools (FFmpeg, FFprobe).

이 계층은 외부 도구를 추상화하여 서비스 계층이
subprocess에 직접 의존하지 않도록 합니다.
"""

from batch_encoder.infrastructure.ffmpeg_runner import FFmpegRunner, get_ffmpeg_runner

__all__ = [
    "FFmpegRunner",
    "get_ffmpeg_runner",
]
