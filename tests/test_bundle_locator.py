"""Tests for locating the running installer."""

import pytest

from helper_manager.core.bundle_locator import InstallerBundleLocator
from helper_manager.errors import LauncherPathError
from helper_manager.platforms import Platform


@pytest.fixture
def mac_bundle(tmp_path):
    app = tmp_path / "Installer.app"
    launcher = app / "Contents" / "MacOS" / "Client4JLauncher"
    launcher.parent.mkdir(parents=True)
    launcher.write_bytes(b"launcher")
    return app, launcher


def _locator(settings, platform, launcher_path):
    return InstallerBundleLocator(
        platform, settings.model_copy(update={"launcher_path": launcher_path})
    )


class TestLauncherPathSet:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_unset(self, settings, value):
        assert _locator(settings, Platform.LINUX, value).is_launcher_path_set() is False

    def test_set(self, settings):
        assert _locator(settings, Platform.LINUX, "/x").is_launcher_path_set() is True

    def test_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HELPER_MANAGER_LAUNCHER_PATH", str(tmp_path))
        assert InstallerBundleLocator(Platform.LINUX).is_launcher_path_set() is True


class TestGetInstallerPath:
    def test_unset_raises(self, settings):
        with pytest.raises(LauncherPathError, match="not set"):
            _locator(settings, Platform.LINUX, None).get_installer_path()

    def test_missing_raises(self, settings, tmp_path):
        with pytest.raises(LauncherPathError, match="does not exist"):
            _locator(settings, Platform.LINUX, str(tmp_path / "gone")).get_installer_path()

    def test_linux_returns_launcher(self, settings, tmp_path):
        exe = tmp_path / "installer"
        exe.write_bytes(b"x")
        assert _locator(settings, Platform.LINUX, str(exe)).get_installer_path() == exe

    def test_mac_resolves_bundle(self, settings, mac_bundle):
        app, launcher = mac_bundle
        assert _locator(settings, Platform.MAC, str(launcher)).get_installer_path() == app

    def test_mac_without_bundle_raises(self, settings, tmp_path):
        exe = tmp_path / "loose-binary"
        exe.write_bytes(b"x")
        with pytest.raises(LauncherPathError, match=".app bundle"):
            _locator(settings, Platform.MAC, str(exe)).get_installer_path()


class TestResolveAppBundle:
    def test_bundle_itself(self, settings, mac_bundle):
        app, _ = mac_bundle
        assert InstallerBundleLocator(Platform.MAC, settings).resolve_app_bundle(app) == app

    def test_nearest_ancestor(self, settings, mac_bundle):
        app, launcher = mac_bundle
        assert InstallerBundleLocator(Platform.MAC, settings).resolve_app_bundle(launcher) == app

    def test_none(self, settings, tmp_path):
        locator = InstallerBundleLocator(Platform.MAC, settings)
        assert locator.resolve_app_bundle(None) is None
        assert locator.resolve_app_bundle(tmp_path / "plain" / "file") is None
