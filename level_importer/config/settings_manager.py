"""
Settings Manager for Level Importer

Manages persistent user-editable import parameters.
Stores settings in JSON format at: ~/.level_importer/settings.json

Features:
- Save/load default unit, tolerance and view parameters
- Apply persisted values on top of the global Settings
- Reset to built-in defaults
"""

import json
import math
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from .settings import Settings, LengthUnit, is_selectable_unit

logger = logging.getLogger(__name__)

# Default settings location
DEFAULT_SETTINGS_DIR = Path.home() / ".level_importer"
SETTINGS_FILE = DEFAULT_SETTINGS_DIR / "settings.json"

SETTINGS_FORMAT = "level_importer_settings"

# Keys persisted under "import_parameters"
PERSISTED_KEYS = ("default_unit", "tolerance_mm", "view_scale", "view_name_template")


class SettingsManager:
    """
    Manages persistent settings for import parameters.

    Settings are stored in JSON format at ~/.level_importer/settings.json
    """

    def __init__(self, settings_file: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            settings_file: Optional custom settings file path (defaults to ~/.level_importer/settings.json)
        """
        self.settings_file = Path(settings_file) if settings_file else SETTINGS_FILE
        self.settings_dir = self.settings_file.parent

    def _ensure_settings_dir(self):
        """Create settings directory if it doesn't exist."""
        self.settings_dir.mkdir(parents=True, exist_ok=True)

    def _load_settings_file(self) -> Dict[str, Any]:
        """
        Internal method to load the entire settings file.

        Returns:
            Settings dictionary or empty dict if not found or unreadable
        """
        if not self.settings_file.exists():
            return {}

        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read settings file {self.settings_file}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning("Invalid settings file format - using defaults")
            return {}
        return data

    def save_import_parameters(self, params: Dict[str, Any]) -> bool:
        """
        Save import parameters to JSON.

        Args:
            params: Mapping with any of the keys
                default_unit ("mm", "m", "ft"), tolerance_mm, view_scale, view_name_template

        Returns:
            True if save successful, False otherwise
        """
        unknown = set(params) - set(PERSISTED_KEYS)
        if unknown:
            logger.error(f"Unknown settings keys: {', '.join(sorted(unknown))}")
            return False

        existing = self._load_settings_file().get("import_parameters", {})
        existing.update(params)

        settings = {
            "version": "1.0",
            "format": SETTINGS_FORMAT,
            "import_parameters": existing,
        }

        try:
            self._ensure_settings_dir()
            with open(self.settings_file, 'w', encoding='utf-8') as f:
                json.dump(settings, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Failed to save settings: {e}")
            return False

        logger.info(f"Settings saved successfully to {self.settings_file}")
        return True

    def load_import_parameters(self) -> Optional[Dict[str, Any]]:
        """
        Load import parameters from JSON.

        Returns:
            Dictionary of parameters if file exists and is valid, None otherwise
        """
        if not self.settings_file.exists():
            logger.info("Settings file does not exist - using defaults")
            return None

        settings = self._load_settings_file()
        if settings.get("format") != SETTINGS_FORMAT or "import_parameters" not in settings:
            logger.warning("Invalid settings file format - using defaults")
            return None

        logger.info(f"Settings loaded successfully from {self.settings_file}")
        return settings["import_parameters"]

    def apply_to(self, settings: Settings) -> Settings:
        """
        Overlay persisted parameters onto a Settings instance.

        Invalid values are logged and ignored.

        Args:
            settings: Settings to update in place

        Returns:
            The same Settings instance
        """
        params = self.load_import_parameters() or {}

        if "default_unit" in params:
            unit = LengthUnit.from_token(str(params["default_unit"]))
            if is_selectable_unit(unit):
                settings.importing.default_unit = unit
            else:
                logger.warning(f"Invalid default unit '{params['default_unit']}' in settings, ignored")

        if "tolerance_mm" in params:
            try:
                tolerance = float(params["tolerance_mm"])
            except (TypeError, ValueError):
                tolerance = -1.0
            if math.isfinite(tolerance) and tolerance >= 0:
                settings.importing.tolerance_mm = tolerance
            else:
                logger.warning(f"Invalid tolerance '{params['tolerance_mm']}' in settings, ignored")

        if "view_scale" in params:
            try:
                scale = int(params["view_scale"])
            except (TypeError, ValueError):
                scale = 0
            if scale > 0:
                settings.views.scale = scale
            else:
                logger.warning(f"Invalid view scale '{params['view_scale']}' in settings, ignored")

        template = params.get("view_name_template")
        if template is not None:
            if "{level}" in str(template):
                settings.views.name_template = str(template)
            else:
                logger.warning("View name template must contain '{level}', ignored")

        return settings

    def reset_to_defaults(self) -> bool:
        """
        Delete settings file to revert to built-in defaults.

        Returns:
            True if reset successful (or file didn't exist), False otherwise
        """
        try:
            if self.settings_file.exists():
                self.settings_file.unlink()
                logger.info("Settings reset to defaults")
            return True
        except OSError as e:
            logger.error(f"Failed to reset settings: {e}")
            return False

    def get_settings_info(self) -> Dict[str, Any]:
        """
        Get information about current settings.

        Returns:
            Dictionary with settings metadata and persisted parameters
        """
        return {
            "settings_file": str(self.settings_file),
            "file_exists": self.settings_file.exists(),
            "using_defaults": not self.settings_file.exists(),
            "import_parameters": self.load_import_parameters() or {},
        }


# Module-level singleton instance
_settings_manager_instance: Optional[SettingsManager] = None


def get_settings_manager() -> SettingsManager:
    """
    Get the global settings manager instance (singleton pattern).

    Returns:
        SettingsManager instance
    """
    global _settings_manager_instance
    if _settings_manager_instance is None:
        _settings_manager_instance = SettingsManager()
    return _settings_manager_instance
