"""Settings manager for application preferences."""

import json
import logging
from typing import Optional

from PySide6.QtCore import QSettings

from batch_encoder.models.encoding_options import EncodingOptions
from batch_encoder.models.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SettingsManager:
    """Wrapper around QSettings for type-safe preference management."""

    def __init__(self):
        self._settings = QSettings()

    # ---------------------------------------------------- Encoding

    def get_last_options(self) -> EncodingOptions:
        """Options used by the last successful job (defaults if none or unreadable)."""
        raw = self._settings.value("encoding/last_options", "", str)
        if not raw:
            return EncodingOptions()
        try:
            return EncodingOptions.from_dict(json.loads(raw))
        except (ValueError, TypeError, ConfigurationError) as e:
            logger.warning(f"Ignoring stored encoding options: {e}")
            return EncodingOptions()

    def set_last_options(self, options: EncodingOptions) -> None:
        """Remember *options* for the next session."""
        self._settings.setValue("encoding/last_options", json.dumps(options.to_dict()))

    def get_last_output_dir(self) -> str:
        """Get the directory last used for explicit output paths (default: empty)."""
        return self._settings.value("encoding/last_output_dir", "", str)

    def set_last_output_dir(self, path: str) -> None:
        self._settings.setValue("encoding/last_output_dir", path)

    # ---------------------------------------------------- Advanced Settings

    def get_ffmpeg_path(self) -> Optional[str]:
        """Get the custom FFmpeg path (None for auto-detect)."""
        path = self._settings.value("advanced/ffmpeg_path", "", str)
        return path if path else None

    def set_ffmpeg_path(self, path: Optional[str]) -> None:
        """Set the custom FFmpeg path (None or empty for auto-detect)."""
        self._settings.setValue("advanced/ffmpeg_path", path or "")

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._settings.clear()
        self._settings.sync()
