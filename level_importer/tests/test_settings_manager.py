"""
Tests for persisted import parameters.
"""
import json

from level_importer.config.settings import LengthUnit, Settings
from level_importer.config.settings_manager import SettingsManager


def test_missing_file_uses_defaults(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")

    assert manager.load_import_parameters() is None
    settings = manager.apply_to(Settings())
    assert settings.importing.default_unit == LengthUnit.METERS
    assert settings.importing.tolerance_mm == 1.0
    assert manager.get_settings_info()["using_defaults"]


def test_save_and_apply(tmp_path):
    manager = SettingsManager(tmp_path / "cfg" / "settings.json")

    assert manager.save_import_parameters({"default_unit": "mm", "tolerance_mm": 2.5})
    assert manager.save_import_parameters({"view_scale": 50, "view_name_template": "Plan {level}"})

    settings = manager.apply_to(Settings())
    assert settings.importing.default_unit == LengthUnit.MILLIMETERS
    assert settings.importing.tolerance_mm == 2.5
    assert settings.views.scale == 50
    assert settings.views.name_template == "Plan {level}"


def test_unknown_keys_are_rejected(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")

    assert not manager.save_import_parameters({"colour": "red"})
    assert not (tmp_path / "settings.json").exists()


def test_invalid_values_are_ignored(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "version": "1.0",
        "format": "level_importer_settings",
        "import_parameters": {
            "default_unit": "yards",
            "tolerance_mm": -3,
            "view_scale": "big",
            "view_name_template": "Plan",
        },
    }))

    settings = SettingsManager(path).apply_to(Settings())

    assert settings.importing == Settings().importing
    assert settings.views == Settings().views


def test_foreign_file_is_ignored(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"import_parameters": {"default_unit": "ft"}}))

    assert SettingsManager(path).load_import_parameters() is None


def test_reset(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    manager.save_import_parameters({"default_unit": "ft"})

    assert manager.reset_to_defaults()
    assert not manager.settings_file.exists()
    assert manager.reset_to_defaults()
