"""
Bundled FFmpeg using imageio-ffmpeg.
Used when neither the configured path nor PATH provides ffmpeg.
"""
from __future__ import annotations


def get_bundled_ffmpeg() -> str:
    """
    Get the ffmpeg binary shipped with imageio-ffmpeg.

    Returns:
        Path to ffmpeg executable

    Raises:
        ImportError: If imageio-ffmpeg is not installed
        RuntimeError: If the binary cannot be obtained
    """
    try:
        import imageio_ffmpeg
    except ImportError:
        raise ImportError(
            "imageio-ffmpeg is not installed.\n"
            "Install with: pip install imageio-ffmpeg"
        )

    try:
        return imageio_ffmpeg.get_ffmpeg_exe()
    except Exception as e:
        raise RuntimeError(f"Failed to get bundled FFmpeg: {e}") from e
