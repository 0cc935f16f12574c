"""
Settings Manager for RoofCalc.

Persists user settings (confidence threshold, default preset) in a JSON file
in a platform-specific config directory, next to the custom preset store.
"""

import os
import json
import logging
import platform
from pathlib import Path
from typing import Any, Dict, Optional, Union

from roofing.config import DEFAULT_CONFIDENCE_THRESHOLD, RoofingConfig, clamp_threshold
from roofing.presets import PresetStore
from version import APP_NAME

logger = logging.getLogger(__name__)


class SettingsManager:
    """
    Manages application settings and the preset store location.

    Settings file values win over RoofingConfig defaults; the config only
    seeds a fresh settings file.
    """

    SETTINGS_FILE = "settings.json"

    def __init__(
        self,
        config_dir: Optional[Union[str, Path]] = None,
        config: Optional[RoofingConfig] = None,
    ):
        """Initialize the settings manager."""
        self._defaults = config or RoofingConfig()
        if config_dir is None and self._defaults.settings_dir:
            config_dir = self._defaults.settings_dir
        self._config_dir = Path(config_dir) if config_dir else self._get_config_dir()
        self._config_file = self._config_dir / self.SETTINGS_FILE
        self._ensure_config_dir()
        self._settings = self._load_settings()

    @staticmethod
    def _get_config_dir() -> Path:
        """Get platform-specific config directory."""
        system = platform.system()

        if system == "Darwin":  # macOS
            return Path.home() / "Library" / "Application Support" / APP_NAME
        if system == "Windows":
            appdata = os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming")
            return Path(appdata) / APP_NAME
        return Path.home() / ".config" / APP_NAME

    def _ensure_config_dir(self):
        self._config_dir.mkdir(parents=True, exist_ok=True)

    def _load_settings(self) -> Dict[str, Any]:
        if self._config_file.exists():
            try:
                with open(self._config_file, "r") as f:
                    return json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Failed to load settings: {e}")
        return {
            "confidence_threshold": self._defaults.confidence_threshold,
            "default_preset": self._defaults.default_preset,
        }

    def _save_settings(self):
        try:
            with open(self._config_file, "w") as f:
                json.dump(self._settings, f, indent=2)
        except IOError as e:
            logger.error(f"Failed to save settings: {e}")

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    # ========================================
    # Confidence threshold
    # ========================================

    def get_confidence_threshold(self) -> float:
        value = self._settings.get("confidence_threshold", DEFAULT_CONFIDENCE_THRESHOLD)
        try:
            return clamp_threshold(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid stored confidence threshold {value!r}, using default")
            return DEFAULT_CONFIDENCE_THRESHOLD

    def set_confidence_threshold(self, value: float) -> float:
        """Store a threshold, clamped to 50-100. Returns the stored value."""
        clamped = clamp_threshold(value)
        if clamped != float(value):
            logger.warning(f"Confidence threshold {value} clamped to {clamped}")
        self._settings["confidence_threshold"] = clamped
        self._save_settings()
        return clamped

    # ========================================
    # Presets
    # ========================================

    def get_default_preset(self) -> str:
        return self._settings.get("default_preset") or self._defaults.default_preset

    def set_default_preset(self, name: str):
        self._settings["default_preset"] = name
        self._save_settings()

    def preset_store(self) -> PresetStore:
        """Open the preset store in the settings directory with built-ins seeded."""
        store = PresetStore.in_directory(self._config_dir)
        store.ensure_builtin_presets()
        return store

    def get_all_settings(self) -> Dict[str, Any]:
        return {
            "config_dir": str(self._config_dir),
            "confidence_threshold": self.get_confidence_threshold(),
            "default_preset": self.get_default_preset(),
        }
