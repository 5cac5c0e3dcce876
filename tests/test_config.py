"""Unit tests for configuration management."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from helper_manager.config import (
    CopyConfig,
    HelperSettings,
    RemovalConfig,
    TerminationConfig,
    _strip_comment_fields,
    load_settings,
)


def test_default_values():
    """Test the documented protocol timings and directory names."""
    settings = HelperSettings()

    assert settings.home_dir == Path.home()
    assert settings.app_home_dirname == ".jdeploy"
    assert settings.context_dirname == ".jdeploy-files"
    assert settings.bundle_extension == "app"
    assert settings.launcher_path is None

    assert settings.termination.graceful_timeout_ms == 5000
    assert settings.termination.poll_interval_ms == 100
    assert settings.termination.kill_timeout_seconds == 10.0
    assert settings.copying.bundle_copy_timeout_seconds == 120.0
    assert settings.removal.script_delay_seconds == 2


def test_derived_directories(tmp_path):
    settings = HelperSettings(home_dir=tmp_path)
    assert settings.locks_dir == tmp_path / ".jdeploy" / "locks"
    assert settings.logs_dir == tmp_path / ".jdeploy" / "logs"
    assert settings.applications_dir == tmp_path / "Applications"


def test_env_var_override(monkeypatch, tmp_path):
    """Test top-level environment variable override."""
    monkeypatch.setenv("HELPER_MANAGER_LAUNCHER_PATH", str(tmp_path / "launcher"))
    settings = HelperSettings()
    assert settings.launcher_path == str(tmp_path / "launcher")


def test_nested_env_var_override(monkeypatch):
    """Test nested environment variable override with __ delimiter."""
    monkeypatch.setenv("HELPER_MANAGER_TERMINATION__GRACEFUL_TIMEOUT_MS", "8000")
    monkeypatch.setenv("HELPER_MANAGER_COPYING__BUNDLE_COPY_TIMEOUT_SECONDS", "30")
    settings = HelperSettings()
    assert settings.termination.graceful_timeout_ms == 8000
    assert settings.copying.bundle_copy_timeout_seconds == 30.0


def test_settings_from_file_with_comments(tmp_path):
    """Test HelperSettings.from_file() strips comment fields."""
    config_file = tmp_path / "config.json"
    config_data = {
        "_comment": "This is a comment",
        "$schema": "http://example.com/schema",
        "termination": {
            "_note": "Shutdown timings",
            "graceful_timeout_ms": 2500,
        },
    }
    config_file.write_text(json.dumps(config_data), encoding="utf-8")

    settings = HelperSettings.from_file(config_file)
    assert settings.termination.graceful_timeout_ms == 2500
    # Unspecified fields keep defaults
    assert settings.termination.poll_interval_ms == 100


def test_settings_from_file_nonexistent(tmp_path):
    """Test HelperSettings.from_file() returns defaults for nonexistent file."""
    settings = HelperSettings.from_file(tmp_path / "missing.json", home_dir=tmp_path)
    assert settings.home_dir == tmp_path
    assert settings.termination.graceful_timeout_ms == 5000


def test_load_settings_overrides_win(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"log_level": "DEBUG"}), encoding="utf-8")

    settings = load_settings(config_file, log_level="WARNING")
    assert settings.log_level == "WARNING"


def test_load_settings_without_file(tmp_path):
    assert load_settings(home_dir=tmp_path).home_dir == tmp_path


def test_strip_comment_fields_nested():
    data = {"_a": 1, "b": {"$c": 2, "d": 3}, "e": 4}
    assert _strip_comment_fields(data) == {"b": {"d": 3}, "e": 4}


def test_strip_comment_fields_non_dict_passthrough():
    assert _strip_comment_fields([1, 2]) == [1, 2]


@pytest.mark.parametrize("field", ["app_home_dirname", "context_dirname", "bundle_extension"])
def test_blank_names_rejected(field):
    with pytest.raises(ValidationError):
        HelperSettings(**{field: "  "})


def test_section_validation():
    with pytest.raises(ValidationError):
        TerminationConfig(poll_interval_ms=0)
    with pytest.raises(ValidationError):
        CopyConfig(bundle_copy_timeout_seconds=-1)
    with pytest.raises(ValidationError):
        RemovalConfig(delete_attempts=0)
