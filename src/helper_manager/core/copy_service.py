"""Copying the installer bundle/executable to the Helper location.

Platform-appropriate copy methods:
    - macOS: the ``ditto`` command, which preserves symlinks, resource forks,
      extended attributes and code signing. Essential for .app bundles.
    - Linux: attribute-preserving copy (``shutil.copy2``) plus explicit
      propagation of the executable bits.
    - Windows: plain overwrite copy.

Destinations are always wiped first so a reinstall never leaves orphaned
files from a previous version behind.
"""

import os
import shutil
import stat
import subprocess
from collections.abc import Callable
from pathlib import Path

from loguru import logger

from ..config import HelperSettings
from ..errors import CopyTimeoutError, HelperIOError, InvalidArgumentError
from ..logging_setup import InstallationLogger, or_null
from ..platforms import Platform, resolve_platform

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def _copy_preserving_attributes(source: Path, destination: Path) -> None:
    """Copy one file with metadata, then carry over the executable bits."""
    shutil.copy2(source, destination)
    exec_bits = source.stat().st_mode & _EXEC_BITS
    if exec_bits:
        destination.chmod(destination.stat().st_mode | exec_bits)


def _copy_plain(source: Path, destination: Path) -> None:
    shutil.copyfile(source, destination)


# Per-file strategy for platforms that copy file by file. macOS hands the
# whole tree to ditto instead.
FILE_COPIERS: dict[Platform, Callable[[Path, Path], None]] = {
    Platform.LINUX: _copy_preserving_attributes,
    Platform.WINDOWS: _copy_plain,
}


def delete_recursively(path: Path) -> None:
    """Delete a file, symlink, or directory tree.

    Raises:
        HelperIOError: If anything could not be removed
    """
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as e:
        raise HelperIOError(f'Failed to delete: {path}: {e}') from e


class HelperCopyService:
    """Copies the installer and the context directory into place."""

    def __init__(
        self,
        install_log: InstallationLogger | None = None,
        platform: Platform | None = None,
        settings: HelperSettings | None = None,
    ) -> None:
        self._log = or_null(install_log)
        self._platform = resolve_platform(platform)
        self._settings = settings or HelperSettings()

    @property
    def platform(self) -> Platform:
        return self._platform

    def copy_installer(self, source: Path | None, destination: Path | None) -> None:
        """Copy the installer to the Helper location.

        Args:
            source: Installer bundle (macOS) or executable (Windows/Linux)
            destination: Helper executable/bundle path

        Raises:
            InvalidArgumentError: If source is None or missing, or destination is None
            HelperIOError: If the copy fails
            CopyTimeoutError: If ditto does not finish in time
        """
        if source is None:
            raise InvalidArgumentError('Source cannot be null')
        source = Path(source)
        if not source.exists():
            raise InvalidArgumentError(f'Source does not exist: {source.absolute()}')
        if destination is None:
            raise InvalidArgumentError('Destination cannot be null')
        destination = Path(destination)

        self._log.section('Copying Installer to Helper Location')
        self._log.info(f'Source: {source.absolute()}')
        self._log.info(f'Destination: {destination.absolute()}')

        self._prepare_destination(destination)

        if self._platform.has_bundles:
            self._copy_with_ditto(source, destination)
        else:
            self._copy_recursively(source, destination, FILE_COPIERS[self._platform])

        self._log.info('Copy completed successfully')

    def copy_context_directory(self, source: Path | None, destination: Path | None) -> None:
        """Copy the application context directory (inert data files).

        Always a plain recursive copy, whatever the platform.

        Raises:
            InvalidArgumentError: If source is not an existing directory, or
                destination is None
            HelperIOError: If the copy fails
        """
        if source is None or not Path(source).is_dir():
            raise InvalidArgumentError(f'Context source is not a directory: {source}')
        if destination is None:
            raise InvalidArgumentError('Destination cannot be null')
        source, destination = Path(source), Path(destination)

        self._log.info(f'Copying context directory {source} -> {destination}')
        self._prepare_destination(destination)
        self._copy_recursively(source, destination, _copy_plain)

    def _prepare_destination(self, destination: Path) -> None:
        parent = destination.parent
        if not parent.exists():
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise HelperIOError(
                    f'Failed to create destination directory: {parent.absolute()}: {e}'
                ) from e
            self._log.info(f'Created directory: {parent.absolute()}')

        if destination.exists() or destination.is_symlink():
            self._log.info(f'Removing existing destination: {destination.absolute()}')
            delete_recursively(destination)

    def _copy_with_ditto(self, source: Path, destination: Path) -> None:
        """Copy using the macOS ``ditto`` command.

        Output (stdout and stderr merged) is drained by ``subprocess.run``
        while waiting, so a chatty child can never block on a full pipe.
        """
        timeout = self._settings.copying.bundle_copy_timeout_seconds
        self._log.info('Using ditto for macOS bundle copy')

        try:
            result = subprocess.run(
                ['ditto', str(source.absolute()), str(destination.absolute())],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CopyTimeoutError(
                f'ditto command timed out after {timeout:g} seconds '
                f'copying {source} to {destination}'
            ) from e
        except OSError as e:
            raise HelperIOError(f'Failed to run ditto for {source} -> {destination}: {e}') from e

        if result.returncode != 0:
            output = (result.stdout or '').strip() or 'Unknown error'
            raise HelperIOError(
                f'ditto command failed with exit code {result.returncode} '
                f'copying {source} to {destination}: {output}'
            )

        self._log.info(f'Copied {destination.absolute()} from {source.absolute()}')

    def _copy_recursively(
        self,
        source: Path,
        destination: Path,
        copy_file: Callable[[Path, Path], None],
    ) -> None:
        """Walk ``source``, creating directories before their files.

        Linked directories are followed and copied as real directories.
        """
        try:
            if not source.is_dir():
                copy_file(source, destination)
                self._log.info(f'Copied {destination.absolute()} from {source.absolute()}')
                return

            for dirpath, _dirnames, filenames in os.walk(source, followlinks=True):
                rel = Path(dirpath).relative_to(source)
                target_dir = destination / rel
                target_dir.mkdir(parents=True, exist_ok=True)
                for name in filenames:
                    copy_file(Path(dirpath) / name, target_dir / name)
        except OSError as e:
            raise HelperIOError(f'Failed to copy {source} to {destination}: {e}') from e

        logger.debug("Copied tree {} -> {}", source, destination)
