"""Tests for ConfigManager and ConfigValidator."""

from datetime import datetime

import pytest
import yaml

from backup_cleaner.config.config_manager import ConfigManager
from backup_cleaner.config.config_validator import ConfigValidator
from backup_cleaner.core.models import LoadErrorKind


def _write(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_missing_file_uses_defaults(tmp_path) -> None:
    manager = ConfigManager(str(tmp_path / "config.yaml"))
    result = manager.load_config()

    assert result.error.kind == LoadErrorKind.MISSING
    assert manager.get_default_keep_count() == 5
    assert manager.get_minimum_age_months() == 1
    assert manager.get_backup_folder_path() is None
    assert manager.get_customers() == {}
    assert manager.get_auto_cleanup_config()["enabled"] is False


def test_invalid_yaml_uses_defaults(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("customers: [unclosed", encoding="utf-8")
    manager = ConfigManager(str(path))
    result = manager.load_config()

    assert result.error.kind == LoadErrorKind.MALFORMED
    assert manager.get_default_keep_count() == 5


def test_invalid_values_use_defaults(tmp_path) -> None:
    path = _write(tmp_path / "config.yaml", {"default_backups_to_keep": -2, "backup_folder_path": "/srv"})
    manager = ConfigManager(str(path))
    result = manager.load_config()

    assert result.error.kind == LoadErrorKind.MALFORMED
    assert "default_backups_to_keep" in result.error.message
    assert manager.get_backup_folder_path() is None


def test_loads_values_and_fills_defaults(tmp_path) -> None:
    path = _write(tmp_path / "config.yaml", {
        "backup_folder_path": str(tmp_path),
        "minimum_age_months": 3,
        "auto_cleanup": {"enabled": True},
        "customers": {"ClientA": {"enabled": False, "keep_count": 2}},
    })
    manager = ConfigManager(str(path))
    result = manager.load_config()

    assert result.error is None
    assert result.path == str(path)
    assert manager.get_backup_folder_path() == str(tmp_path)
    assert manager.get_minimum_age_months() == 3
    assert manager.get_default_keep_count() == 5
    assert manager.get_auto_cleanup_config() == {"enabled": True, "run_hour": 2, "last_run": None}
    assert manager.get_scan_config()["workers"] == 1
    assert manager.get_customer("ClientA") == {"enabled": False, "keep_count": 2}
    assert manager.get_customer("ClientB") is None


def test_empty_file_is_valid(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    manager = ConfigManager(str(path))
    assert manager.load_config().error is None
    assert manager.get_customers() == {}


def test_save_round_trips_customers_and_last_run(tmp_path) -> None:
    path = tmp_path / "nested" / "config.yaml"
    manager = ConfigManager(str(path))
    manager.load_config()
    manager.set_customer("ClientA", keep_count=3)
    manager.set_customer("ClientB", enabled=False)
    manager.set_last_auto_cleanup(datetime(2024, 6, 15, 2, 0, 30, 1234))
    assert manager.save() == str(path)

    reloaded = ConfigManager(str(path))
    assert reloaded.load_config().error is None
    assert reloaded.get_customer("ClientA") == {"enabled": True, "keep_count": 3}
    assert reloaded.get_customer("ClientB") == {"enabled": False, "keep_count": 5}
    assert reloaded.get_last_auto_cleanup() == datetime(2024, 6, 15, 2, 0, 30)


def test_last_run_as_iso_string(tmp_path) -> None:
    path = _write(tmp_path / "config.yaml", {"auto_cleanup": {"last_run": "2024-06-15T02:00:00"}})
    manager = ConfigManager(str(path))
    assert manager.load_config().error is None
    assert manager.get_last_auto_cleanup() == datetime(2024, 6, 15, 2, 0)


def test_set_customer_rejects_negative_keep_count(tmp_path) -> None:
    manager = ConfigManager(str(tmp_path / "config.yaml"))
    with pytest.raises(ValueError):
        manager.set_customer("ClientA", keep_count=-1)


def test_update_settings(tmp_path) -> None:
    manager = ConfigManager(str(tmp_path / "config.yaml"))
    manager.load_config()
    manager.update_settings(backup_folder_path="/srv/backups", minimum_age_months=0,
                            auto_cleanup_enabled=True)
    assert manager.get_backup_folder_path() == "/srv/backups"
    assert manager.get_minimum_age_months() == 0
    assert manager.get_default_keep_count() == 5
    assert manager.get_auto_cleanup_config()["enabled"] is True


@pytest.mark.parametrize("config", [
    {"minimum_age_months": "1"},
    {"default_backups_to_keep": True},
    {"auto_cleanup": {"run_hour": 24}},
    {"auto_cleanup": {"enabled": "yes"}},
    {"auto_cleanup": {"last_run": "yesterday"}},
    {"scan": {"workers": 0}},
    {"customers": ["ClientA"]},
    {"customers": {"ClientA": {"keep_count": -1}}},
    {"customers": {"ClientA": {"enabled": 1}}},
    {"ignore_file": ""},
    {"logging": {"level": "LOUD"}},
])
def test_validator_rejects(config) -> None:
    with pytest.raises(ValueError):
        ConfigValidator().validate(config)


def test_validator_accepts_zero_keep_count() -> None:
    ConfigValidator().validate({"customers": {"ClientA": {"keep_count": 0}}, "minimum_age_months": 0})
