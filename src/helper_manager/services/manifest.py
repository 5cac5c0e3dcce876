"""Recording the installed Helper in the application's uninstall manifest."""

from pathlib import Path

from ..errors import InvalidArgumentError
from ..models import (
    CleanupStrategy,
    FileType,
    InstallationResult,
    ManifestDirectoryEntry,
    ManifestFileEntry,
    UninstallManifest,
)
from ..platforms import Platform, resolve_platform


class UninstallManifestBuilder:
    """Collects uninstall entries in insertion order."""

    def __init__(self) -> None:
        self._files: list[ManifestFileEntry] = []
        self._directories: list[ManifestDirectoryEntry] = []

    def add_file(
        self, path: str, type: FileType, description: str | None = None
    ) -> 'UninstallManifestBuilder':
        self._files.append(ManifestFileEntry(path=path, type=type, description=description))
        return self

    def add_directory(
        self, path: str, cleanup: CleanupStrategy, description: str | None = None
    ) -> 'UninstallManifestBuilder':
        self._directories.append(
            ManifestDirectoryEntry(path=path, cleanup=cleanup, description=description)
        )
        return self

    def build(self) -> UninstallManifest:
        return UninstallManifest(files=tuple(self._files), directories=tuple(self._directories))


def add_helper_to_manifest(
    builder: UninstallManifestBuilder | None,
    result: InstallationResult | None,
    platform: Platform | None = None,
) -> None:
    """Add the Helper's files and directories to the uninstall manifest.

    macOS records the bundle as a directory; Windows and Linux record the
    executable as a binary file. Both record the context directory (always
    removed) and the parent directory (removed only if empty).

    Raises:
        InvalidArgumentError: If builder or result is None, the installation
            failed, or the result is missing a path
    """
    if builder is None:
        raise InvalidArgumentError('builder cannot be null')
    if result is None:
        raise InvalidArgumentError('result cannot be null')
    if not result.success:
        raise InvalidArgumentError(
            f'Cannot add failed installation to manifest: {result.error_message}'
        )
    executable, context_dir = result.helper_executable, result.helper_context_directory
    if executable is None or context_dir is None:
        raise InvalidArgumentError('Helper paths cannot be null in successful result')

    executable, context_dir = Path(executable).absolute(), Path(context_dir).absolute()

    if resolve_platform(platform).has_bundles:
        builder.add_directory(str(executable), CleanupStrategy.ALWAYS, 'Helper application bundle')
        parent_description = 'Helper installation directory'
    else:
        builder.add_file(str(executable), FileType.BINARY, 'Helper executable')
        parent_description = 'Helpers directory'

    builder.add_directory(str(context_dir), CleanupStrategy.ALWAYS, 'Helper context directory')
    builder.add_directory(str(executable.parent), CleanupStrategy.IF_EMPTY, parent_description)
