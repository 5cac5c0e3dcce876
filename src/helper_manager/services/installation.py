"""Installing the Helper next to (or, on macOS, alongside) the application.

Installation copies the running installer itself to the Helper location,
then copies the application context directory beside it so the Helper
knows which application it serves.
"""

from pathlib import Path

from ..config import HelperSettings
from ..core.bundle_locator import InstallerBundleLocator
from ..core.copy_service import HelperCopyService
from ..errors import InvalidArgumentError, LauncherPathError
from ..logging_setup import InstallationLogger, or_null
from ..models import InstallationResult
from ..paths import resolve_helper_location
from ..platforms import Platform, resolve_platform


class HelperInstallationService:
    """Installs the Helper and reports the outcome as an InstallationResult."""

    def __init__(
        self,
        install_log: InstallationLogger | None = None,
        copy_service: HelperCopyService | None = None,
        locator: InstallerBundleLocator | None = None,
        platform: Platform | None = None,
        settings: HelperSettings | None = None,
    ) -> None:
        self._log = or_null(install_log)
        self._platform = resolve_platform(platform)
        self._settings = settings or HelperSettings()
        self._copy_service = copy_service or HelperCopyService(
            install_log, platform=self._platform, settings=self._settings
        )
        self._locator = locator or InstallerBundleLocator(self._platform, self._settings)

    def install_helper(
        self,
        app_name: str | None,
        app_directory: Path | None,
        context_source_dir: Path | None,
    ) -> InstallationResult:
        """Install the Helper for an application.

        Never raises: every problem is reported as a failed result. Once the
        Helper paths are known they are carried in the failed result too.

        Args:
            app_name: Application name (e.g., "My App")
            app_directory: Application install directory (ignored on macOS)
            context_source_dir: Application context directory to copy

        Returns:
            InstallationResult describing the outcome
        """
        self._log.section('Installing Helper Application')
        self._log.info(f'App name: {app_name}')
        self._log.info(f'App directory: {app_directory}')
        self._log.info(f'Context directory: {context_source_dir}')

        if app_name is None or not app_name.strip():
            return InstallationResult.failed('App name cannot be null or empty')
        if context_source_dir is None or not Path(context_source_dir).exists():
            return InstallationResult.failed(
                f'Context directory does not exist: {context_source_dir}'
            )
        context_source_dir = Path(context_source_dir)
        if not context_source_dir.is_dir():
            return InstallationResult.failed(
                f'Context path is not a directory: {context_source_dir.absolute()}'
            )

        executable = context_dir = None
        try:
            location = resolve_helper_location(
                app_name, app_directory, platform=self._platform, settings=self._settings
            )
            executable, context_dir = location.executable_path, location.context_dir
            self._log.info(f'Helper directory: {location.install_dir}')
            self._log.info(f'Helper executable: {executable}')
            self._log.info(f'Helper context directory: {context_dir}')

            if not location.install_dir.exists():
                self._log.info(f'Creating Helper directory: {location.install_dir}')
                location.install_dir.mkdir(parents=True, exist_ok=True)

            if not self._locator.is_launcher_path_set():
                return InstallationResult.failed(
                    'Installer bundle path not available (launcher path not set)',
                    executable,
                    context_dir,
                )
            try:
                installer = self._locator.get_installer_path()
            except LauncherPathError as e:
                return InstallationResult.failed(
                    f'Failed to locate installer bundle: {e}', executable, context_dir
                )
            self._log.info(f'Installer bundle: {installer}')

            self._copy_service.copy_installer(installer, executable)
            self._copy_service.copy_context_directory(context_source_dir, context_dir)

            if not executable.exists():
                return InstallationResult.failed(
                    'Helper executable was not created at expected location',
                    executable,
                    context_dir,
                )
            if not context_dir.exists():
                return InstallationResult.failed(
                    'Helper context directory was not created at expected location',
                    executable,
                    context_dir,
                )
        except Exception as e:
            message = f'Helper installation failed: {e}'
            self._log.error(message, e)
            return InstallationResult.failed(message, executable, context_dir)

        self._log.info('Helper installation completed successfully')
        return InstallationResult.succeeded(executable, context_dir)

    def is_helper_installed(self, app_name: str | None, app_directory: Path | None) -> bool:
        """Check whether the Helper executable (or bundle) exists."""
        if app_name is None or not app_name.strip():
            return False
        try:
            executable = resolve_helper_location(
                app_name, app_directory, platform=self._platform, settings=self._settings
            ).executable_path
        except InvalidArgumentError:
            return False
        return executable.exists()
