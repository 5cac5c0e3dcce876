"""Configuration management for helper-manager using pydantic-settings.

Supports hierarchical configuration from:
1. Explicit keyword arguments / JSON config file (highest priority)
2. Environment variables
3. Default values (lowest priority)

Environment variables use the format: HELPER_MANAGER_<SECTION>__<FIELD>
Example: HELPER_MANAGER_TERMINATION__GRACEFUL_TIMEOUT_MS=8000

Settings are never cached at module level. Build one ``HelperSettings`` per
installer invocation and pass it to the services that need it.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TerminationConfig(BaseModel):
    """Shutdown protocol timings for a running Helper."""

    graceful_timeout_ms: int = Field(default=5000, ge=0)
    poll_interval_ms: int = Field(default=100, gt=0)
    kill_timeout_seconds: float = Field(default=10.0, gt=0)


class CopyConfig(BaseModel):
    """Installer copy configuration section."""

    bundle_copy_timeout_seconds: float = Field(default=120.0, gt=0)


class RemovalConfig(BaseModel):
    """Helper removal and self-deletion configuration section."""

    script_delay_seconds: int = Field(default=2, ge=0)
    delete_attempts: int = Field(default=3, ge=1)
    delete_retry_max_wait_seconds: float = Field(default=0.5, ge=0)


def _strip_comment_fields(data: Any) -> Any:
    """Recursively strip keys starting with _ or $ from dict.

    Args:
        data: Dictionary to clean (or any other type, which is returned as-is)

    Returns:
        Dictionary with comment fields removed, or original value if not a dict
    """
    if not isinstance(data, dict):
        return data
    return {
        k: _strip_comment_fields(v) if isinstance(v, dict) else v
        for k, v in data.items()
        if not k.startswith('_') and not k.startswith('$')
    }


class HelperSettings(BaseSettings):
    """Root configuration model with nested sections.

    ``home_dir`` anchors every per-user location: the lock directory
    (``~/.jdeploy/locks``), the logs directory and, on macOS, the
    ``~/Applications`` root that Helper bundles are installed into.
    """

    home_dir: Path = Field(default_factory=Path.home)
    app_home_dirname: str = ".jdeploy"
    context_dirname: str = ".jdeploy-files"
    bundle_extension: str = "app"
    launcher_path: str | None = None
    log_level: str = "INFO"

    termination: TerminationConfig = Field(default_factory=TerminationConfig)
    copying: CopyConfig = Field(default_factory=CopyConfig)
    removal: RemovalConfig = Field(default_factory=RemovalConfig)

    model_config = SettingsConfigDict(
        env_prefix="HELPER_MANAGER_",
        env_nested_delimiter="__",
    )

    @field_validator('app_home_dirname', 'context_dirname', 'bundle_extension')
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        """Validate that directory names and extensions are not blank."""
        if not v or not v.strip():
            raise ValueError('value must be a non-empty string')
        return v

    @property
    def app_home(self) -> Path:
        return self.home_dir / self.app_home_dirname

    @property
    def locks_dir(self) -> Path:
        """Directory holding Helper lock and shutdown signal files."""
        return self.app_home / "locks"

    @property
    def logs_dir(self) -> Path:
        return self.app_home / "logs"

    @property
    def applications_dir(self) -> Path:
        """Per-user applications root used on macOS."""
        return self.home_dir / "Applications"

    @classmethod
    def from_file(cls, config_path: Path | str, **overrides: Any) -> "HelperSettings":
        """Load settings from a JSON config file.

        Args:
            config_path: Path to JSON config file
            **overrides: Explicit values that win over the file

        Returns:
            Settings instance loaded from file, or default settings if the
            file doesn't exist
        """
        path = Path(config_path)
        if not path.exists():
            return cls(**overrides)
        raw = json.loads(path.read_text(encoding='utf-8'))
        cleaned = _strip_comment_fields(raw)
        cleaned.update(overrides)
        return cls(**cleaned)


def load_settings(config_path: Path | str | None = None, **overrides: Any) -> HelperSettings:
    """Build a fresh settings object from an optional JSON file and the environment.

    Args:
        config_path: Optional path to JSON config file
        **overrides: Explicit values that win over file and environment

    Returns:
        HelperSettings instance with merged configuration
    """
    if config_path is not None:
        return HelperSettings.from_file(config_path, **overrides)
    return HelperSettings(**overrides)
