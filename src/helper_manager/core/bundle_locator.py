"""Locates the installer that is currently running.

The native launcher exports its own path (``HELPER_MANAGER_LAUNCHER_PATH``).
On macOS that path points inside ``Foo.app/Contents/MacOS/`` and is resolved
to the enclosing bundle, which is what gets copied as the Helper.
"""

from pathlib import Path

from ..config import HelperSettings
from ..errors import LauncherPathError
from ..platforms import Platform, resolve_platform


class InstallerBundleLocator:
    def __init__(
        self,
        platform: Platform | None = None,
        settings: HelperSettings | None = None,
    ) -> None:
        self._platform = resolve_platform(platform)
        self._settings = settings or HelperSettings()

    @property
    def launcher_path(self) -> str | None:
        return self._settings.launcher_path

    def is_launcher_path_set(self) -> bool:
        path = self.launcher_path
        return path is not None and bool(path.strip())

    def get_installer_path(self) -> Path:
        """Get the installer bundle (macOS) or executable (Windows/Linux).

        Raises:
            LauncherPathError: If the launcher path is unset, does not exist,
                or (on macOS) is not inside a .app bundle
        """
        if not self.is_launcher_path_set():
            raise LauncherPathError(
                'Launcher path is not set. It should be provided by the native '
                'launcher through HELPER_MANAGER_LAUNCHER_PATH.'
            )
        launcher = Path(self.launcher_path)
        if not launcher.exists():
            raise LauncherPathError(f'Launcher path does not exist: {launcher}')

        if not self._platform.has_bundles:
            return launcher

        bundle = self.resolve_app_bundle(launcher)
        if bundle is None:
            raise LauncherPathError(f'Could not find .app bundle for launcher path: {launcher}')
        return bundle

    def resolve_app_bundle(self, path: Path | str | None) -> Path | None:
        """Return ``path`` if it is a bundle, else its nearest bundle ancestor."""
        if path is None:
            return None
        path = Path(path)
        suffix = f'.{self._settings.bundle_extension}'

        if path.is_dir() and path.name.endswith(suffix):
            return path
        for parent in path.parents:
            if parent.name.endswith(suffix):
                return parent
        return None
