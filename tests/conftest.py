"""Shared pytest fixtures."""

import os

import pytest

from helper_manager.config import HelperSettings


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep HELPER_MANAGER_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("HELPER_MANAGER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings(tmp_path):
    """Settings rooted at a throwaway home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return HelperSettings(home_dir=home)


@pytest.fixture
def context_source(tmp_path):
    """An application context directory with the files a Helper reads."""
    ctx = tmp_path / "ctx"
    ctx.mkdir()
    (ctx / "config.json").write_text('{"name": "my-app"}', encoding="utf-8")
    (ctx / "icon.png").write_bytes(b"\x89PNG")
    return ctx
