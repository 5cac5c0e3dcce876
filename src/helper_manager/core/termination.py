"""Graceful-then-forced termination of a running Helper.

The Helper is first asked to exit by creating its shutdown signal file and
polling the lock until it is released. If it does not exit within the
timeout it is killed by name with the platform's kill command.
"""

import subprocess
import time
from collections.abc import Callable

from loguru import logger

from ..config import HelperSettings
from ..errors import require_name
from ..models import HelperIdentity
from ..paths import derive_helper_name
from ..platforms import Platform, resolve_platform
from .process_monitor import HelperProcessMonitor

KillCommand = tuple[list[str], frozenset[int]]


def _pkill_mac(app_name: str) -> KillCommand:
    return ['pkill', '-f', derive_helper_name(app_name, Platform.MAC)], frozenset({0, 1})


def _pkill_linux(app_name: str) -> KillCommand:
    return ['pkill', '-f', derive_helper_name(app_name, Platform.LINUX)], frozenset({0, 1})


def _taskkill_windows(app_name: str) -> KillCommand:
    exe_name = f'{derive_helper_name(app_name, Platform.WINDOWS)}.exe'
    # 128 = no such process
    return ['taskkill', '/F', '/IM', exe_name], frozenset({0, 128})


# pkill exits 1 when nothing matched, which still means "not running"
KILL_COMMANDS: dict[Platform, Callable[[str], KillCommand]] = {
    Platform.MAC: _pkill_mac,
    Platform.LINUX: _pkill_linux,
    Platform.WINDOWS: _taskkill_windows,
}


class HelperTerminator:
    """Stops a running Helper, politely first."""

    def __init__(
        self,
        monitor: HelperProcessMonitor | None = None,
        platform: Platform | None = None,
        settings: HelperSettings | None = None,
    ) -> None:
        self._settings = settings or HelperSettings()
        self._monitor = monitor or HelperProcessMonitor(self._settings)
        self._platform = resolve_platform(platform)

    def terminate(
        self,
        identity: HelperIdentity,
        app_name: str,
        timeout_ms: int | None = None,
    ) -> bool:
        """Terminate the Helper for ``identity``.

        Args:
            identity: Lock identity of the Helper
            app_name: Application name, used to find the process for a force kill
            timeout_ms: Graceful wait (default: settings, 5000 ms)

        Returns:
            True if the Helper is no longer running

        Raises:
            InvalidArgumentError: If app_name is blank
        """
        require_name(app_name, 'appName')
        if timeout_ms is None:
            timeout_ms = self._settings.termination.graceful_timeout_ms

        if not self._monitor.is_running(identity):
            logger.info("Helper is not running for: {}", identity.package_name)
            return True

        logger.info("Attempting to terminate Helper for: {}", identity.package_name)
        if self._request_shutdown(identity, timeout_ms):
            logger.info("Helper terminated gracefully for: {}", identity.package_name)
            return True

        logger.info(
            "Graceful termination failed, attempting force kill for: {}",
            identity.package_name,
        )
        killed = self.force_kill(identity, app_name)
        if killed:
            logger.info("Helper force killed successfully for: {}", identity.package_name)
        else:
            logger.warning("Failed to terminate Helper for: {}", identity.package_name)
        return killed

    def force_kill(self, identity: HelperIdentity, app_name: str) -> bool:
        """Kill the Helper by name.

        Returns:
            True if the Helper is not running or the kill command reported
            success. False on any other exit code, a hung kill command, or a
            launch error.

        Raises:
            InvalidArgumentError: If app_name is blank
        """
        require_name(app_name, 'appName')
        if not self._monitor.is_running(identity):
            return True

        argv, ok_codes = KILL_COMMANDS[self._platform](app_name)
        timeout = self._settings.termination.kill_timeout_seconds
        try:
            result = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Kill command {} did not finish within {}s", argv[0], timeout)
            return False
        except OSError as e:
            logger.warning("Error force killing Helper with {}: {}", argv[0], e)
            return False

        return result.returncode in ok_codes

    def _request_shutdown(self, identity: HelperIdentity, timeout_ms: int) -> bool:
        """Create the shutdown signal and wait for the lock to be released."""
        signal_file = self._monitor.shutdown_signal_file(identity)
        try:
            signal_file.parent.mkdir(parents=True, exist_ok=True)
            signal_file.touch()
        except OSError as e:
            logger.warning("Failed to create shutdown signal file {}: {}", signal_file, e)
            return False

        poll_interval = self._settings.termination.poll_interval_ms / 1000
        deadline = time.monotonic() + timeout_ms / 1000
        try:
            while time.monotonic() < deadline:
                if not self._monitor.is_running(identity):
                    return True
                time.sleep(poll_interval)
            return False
        finally:
            signal_file.unlink(missing_ok=True)
