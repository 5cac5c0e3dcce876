"""Keeping the Helper in sync with the application's services.

Run on every install/update of the application. The Helper exists only
while the application declares background services:

    Helper on disk | services | action
    ---------------+----------+------------------------------------------
    yes            | yes      | terminate, delete, reinstall  -> UPDATED
    no             | yes      | install                       -> INSTALLED
    yes            | no       | terminate, delete             -> REMOVED
    no             | no       | nothing                       -> NO_ACTION

Termination is best-effort: a Helper that refuses to stop is logged and the
update carries on.
"""

from pathlib import Path

from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import HelperSettings
from ..core.copy_service import delete_recursively
from ..core.termination import HelperTerminator
from ..errors import HelperIOError, InvalidArgumentError, require_name
from ..logging_setup import InstallationLogger, or_null
from ..models import HelperIdentity, UpdateResult
from ..paths import resolve_helper_location
from ..platforms import Platform, resolve_platform
from .installation import HelperInstallationService


class HelperUpdateService:
    """Installs, updates, or removes the Helper to match the services."""

    def __init__(
        self,
        installation_service: HelperInstallationService | None = None,
        terminator: HelperTerminator | None = None,
        install_log: InstallationLogger | None = None,
        platform: Platform | None = None,
        settings: HelperSettings | None = None,
    ) -> None:
        self._log = or_null(install_log)
        self._platform = resolve_platform(platform)
        self._settings = settings or HelperSettings()
        self._installation_service = installation_service or HelperInstallationService(
            install_log, platform=self._platform, settings=self._settings
        )
        self._terminator = terminator or HelperTerminator(
            platform=self._platform, settings=self._settings
        )

    def update_helper(
        self,
        package_name: str | None,
        source: str | None,
        app_name: str | None,
        app_directory: Path | None,
        context_source_dir: Path | None,
        services_exist: bool,
    ) -> UpdateResult:
        """Reconcile the Helper with the application's services.

        Raises:
            InvalidArgumentError: If package_name or app_name is blank. All
                other problems come back as a FAILED result.
        """
        identity = HelperIdentity.of(package_name, source)
        require_name(app_name, 'appName')

        self._info(
            f'Updating Helper for: {app_name} '
            f'(package={package_name}, servicesExist={services_exist})'
        )

        try:
            executable = resolve_helper_location(
                app_name, app_directory, platform=self._platform, settings=self._settings
            ).executable_path
        except InvalidArgumentError as e:
            return UpdateResult.failure(f'Cannot resolve Helper location: {e}')
        helper_exists = executable.exists()

        if services_exist:
            if helper_exists:
                self._info('Existing Helper found, updating...')
                self._terminate_existing(identity, app_name)
                if not self.delete_helper(app_name, app_directory):
                    return UpdateResult.failure('Failed to delete existing Helper before update')
                result = self._installation_service.install_helper(
                    app_name, app_directory, context_source_dir
                )
                if not result.success:
                    return UpdateResult.failure(
                        f'Failed to install updated Helper: {result.error_message}'
                    )
                self._info('Helper updated successfully')
                return UpdateResult.updated(result)

            self._info('No existing Helper found, installing new Helper...')
            result = self._installation_service.install_helper(
                app_name, app_directory, context_source_dir
            )
            if not result.success:
                return UpdateResult.failure(f'Failed to install Helper: {result.error_message}')
            self._info('Helper installed successfully')
            return UpdateResult.installed(result)

        if not helper_exists:
            self._info("No Helper to remove (didn't exist)")
            return UpdateResult.no_action()

        self._info('Services removed, removing Helper...')
        self._terminate_existing(identity, app_name)
        if not self.delete_helper(app_name, app_directory):
            return UpdateResult.failure('Failed to remove Helper')
        self._info('Helper removed successfully')
        return UpdateResult.removed()

    def delete_helper(self, app_name: str | None, app_directory: Path | None) -> bool:
        """Delete the Helper executable, its context directory and its parent.

        Only a failure to delete the executable (or bundle) is fatal. The
        context directory and the parent directory are best-effort. On macOS
        the parent ``{App} Helper`` directory is always removed, elsewhere
        the shared ``helpers`` directory only when left empty.

        Raises:
            InvalidArgumentError: If app_name is blank
        """
        require_name(app_name, 'appName')
        self._info(f'Deleting Helper for: {app_name}')

        try:
            location = resolve_helper_location(
                app_name, app_directory, platform=self._platform, settings=self._settings
            )
            executable = location.executable_path

            if executable.is_dir():
                try:
                    delete_recursively(executable)
                except HelperIOError as e:
                    self._warning(f'Failed to delete Helper bundle: {executable} - {e}')
                    return False
                self._info(f'Deleted Helper bundle: {executable}')
            elif executable.exists():
                try:
                    self._unlink_with_retry(executable)
                except OSError as e:
                    self._warning(
                        f'Failed to delete Helper executable: {executable} '
                        f'- file may be locked or in use ({e})'
                    )
                    return False
                self._info(f'Deleted Helper executable: {executable}')

            if location.context_dir.exists():
                try:
                    delete_recursively(location.context_dir)
                    self._info(f'Deleted Helper context directory: {location.context_dir}')
                except HelperIOError as e:
                    self._warning(
                        f'Failed to delete Helper context directory: {location.context_dir} - {e}'
                    )

            self._remove_install_dir(location.install_dir)
            return True
        except Exception as e:
            self._warning(f'Unexpected error deleting Helper: {e}')
            return False

    def _remove_install_dir(self, install_dir: Path) -> None:
        if not install_dir.exists():
            return
        try:
            if self._platform.has_bundles:
                delete_recursively(install_dir)
                self._info(f'Deleted Helper directory: {install_dir}')
            elif not any(install_dir.iterdir()):
                install_dir.rmdir()
                self._info(f'Deleted empty helpers directory: {install_dir}')
        except OSError as e:
            self._warning(f'Failed to delete Helper directory: {install_dir} - {e}')

    def _unlink_with_retry(self, path: Path) -> None:
        """Delete a file, retrying briefly while Windows still holds it open."""
        removal = self._settings.removal

        @retry(
            retry=retry_if_exception_type(PermissionError),
            stop=stop_after_attempt(removal.delete_attempts),
            wait=wait_exponential(
                multiplier=0.05, min=0.05, max=removal.delete_retry_max_wait_seconds
            ),
            reraise=True,
        )
        def _unlink() -> None:
            path.unlink()

        _unlink()

    def _terminate_existing(self, identity: HelperIdentity, app_name: str) -> bool:
        self._info('Terminating running Helper (if any)...')
        try:
            terminated = self._terminator.terminate(
                identity, app_name, self._settings.termination.graceful_timeout_ms
            )
        except Exception as e:
            logger.opt(exception=e).warning("Helper termination raised")
            terminated = False

        if terminated:
            self._info('Helper stopped (or was not running)')
        else:
            self._warning('Could not terminate existing Helper, attempting to continue anyway')
        return terminated

    def _info(self, message: str) -> None:
        self._log.info(message)
        logger.info("[HelperUpdateService] {}", message)

    def _warning(self, message: str) -> None:
        self._log.warning(message)
        logger.warning("[HelperUpdateService] {}", message)
