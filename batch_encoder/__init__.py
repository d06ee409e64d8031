"""Batch video encoding engine driving FFmpeg."""

from batch_encoder.utils.config import APP_VERSION as __version__

__all__ = ["__version__"]
