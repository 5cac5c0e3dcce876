"""Scheduling removal of a Helper that may still be running.

Used when the Helper uninstalls itself (or the application it serves) from
its own process. The files are removed by a detached cleanup script after
the Helper has exited.
"""

from pathlib import Path

from loguru import logger

from ..config import HelperSettings
from ..core.cleanup_script import CleanupScriptGenerator
from ..errors import HelperIOError, require_name
from ..paths import resolve_helper_location
from ..platforms import Platform, resolve_platform


class HelperSelfDeleteService:
    def __init__(
        self,
        script_generator: CleanupScriptGenerator | None = None,
        platform: Platform | None = None,
        settings: HelperSettings | None = None,
    ) -> None:
        self._platform = resolve_platform(platform)
        self._settings = settings or HelperSettings()
        self._scripts = script_generator or CleanupScriptGenerator(self._platform, self._settings)

    def schedule_helper_cleanup(self, app_name: str | None, app_directory: Path | None) -> bool:
        """Schedule deletion of the Helper for ``app_name``.

        Returns:
            True if cleanup was scheduled or there is nothing to clean up,
            False if scheduling failed.

        Raises:
            InvalidArgumentError: If app_name is blank
        """
        require_name(app_name, 'appName')
        logger.info("Scheduling Helper cleanup for: {}", app_name)

        helper_path = None
        try:
            helper_path = self.get_helper_path(app_name, app_directory)
            location = resolve_helper_location(
                app_name, app_directory, platform=self._platform, settings=self._settings
            )
            if not helper_path.exists():
                logger.info("Helper does not exist, skipping cleanup: {}", helper_path)
                return True

            script = self._scripts.generate(helper_path, location.context_dir, location.install_dir)
            self._scripts.execute(script)
        except HelperIOError as e:
            logger.opt(exception=e).warning(
                "Failed to schedule Helper cleanup for {} at {}", app_name, helper_path or 'unknown'
            )
            return False
        except Exception as e:
            logger.opt(exception=e).error("Unexpected error scheduling Helper cleanup for {}", app_name)
            return False

        logger.info("Cleanup script launched - Helper will be deleted after exit")
        return True

    def schedule_current_helper_cleanup(self) -> bool:
        """Schedule deletion of the Helper this process was launched from.

        Relies only on the launcher path, so it works without knowing the
        application name.
        """
        launcher = self._existing_launcher()
        if launcher is None:
            logger.warning("Cannot schedule current Helper cleanup: launcher path not set or missing")
            return False

        helper_path = self._resolve_from_launcher(launcher)
        helper_dir = helper_path.parent
        context_dir = helper_dir / self._settings.context_dirname

        logger.info("Scheduling cleanup for current Helper: {}", helper_path)
        try:
            script = self._scripts.generate(helper_path, context_dir, helper_dir)
            self._scripts.execute(script)
        except Exception as e:
            logger.opt(exception=e).warning(
                "Failed to schedule current Helper cleanup at {}", helper_path
            )
            return False
        return True

    def get_helper_path(self, app_name: str, app_directory: Path | None) -> Path:
        """Path of the Helper executable or bundle.

        Prefers the launcher path of the running process, falling back to
        the computed install location.
        """
        launcher = self._existing_launcher()
        if launcher is not None:
            logger.debug("Using Helper path from launcher path: {}", launcher)
            return self._resolve_from_launcher(launcher)
        return resolve_helper_location(
            app_name, app_directory, platform=self._platform, settings=self._settings
        ).executable_path

    def helper_exists(self, app_name: str | None, app_directory: Path | None) -> bool:
        if app_name is None or not app_name.strip():
            return False
        return self.get_helper_path(app_name, app_directory).exists()

    def _existing_launcher(self) -> Path | None:
        raw = self._settings.launcher_path
        if not raw:
            return None
        launcher = Path(raw)
        return launcher if launcher.exists() else None

    def _resolve_from_launcher(self, launcher: Path) -> Path:
        # Foo Helper.app/Contents/MacOS/Foo Helper -> Foo Helper.app
        suffix = f'.{self._settings.bundle_extension}'
        path = launcher.absolute().as_posix()
        index = path.find(f'{suffix}/Contents/MacOS/')
        if index > 0:
            return Path(path[: index + len(suffix)])
        return launcher
