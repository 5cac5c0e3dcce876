"""Data models for helper-manager.

All models use Pydantic v2 BaseModel with frozen=True for immutability.
Results are built only through their classmethod constructors.
"""

import hashlib
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import require_name

# Characters replaced with "-" when turning a package name into a file name
_UNSAFE_CHARS = (' ', '/', '\\', ':', '*', '?', '"', '<', '>', '|')


class HelperIdentity(BaseModel):
    """Identity of a Helper for lock and shutdown-signal files.

    Independent of the application's display name, which may change between
    versions while the identity must not.
    """

    model_config = ConfigDict(frozen=True)

    package_name: str = Field(..., description="Package name, e.g. '@foo/bar'")
    source: str | None = Field(
        default=None,
        description="Package source (None for npm, repository URL for github)",
    )

    @field_validator('package_name')
    @classmethod
    def package_name_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('packageName cannot be null or empty')
        return v

    @classmethod
    def of(cls, package_name: str | None, source: str | None = None) -> 'HelperIdentity':
        """Build an identity, rejecting a blank package name.

        Raises:
            InvalidArgumentError: If package_name is None, empty, or blank
        """
        return cls(package_name=require_name(package_name, 'packageName'), source=source)

    @property
    def sanitized_name(self) -> str:
        """Filesystem-safe form of the package name."""
        name = self.package_name.lower().replace('@', '')
        for ch in _UNSAFE_CHARS:
            name = name.replace(ch, '-')
        return name

    @property
    def fully_qualified_name(self) -> str:
        """``{md5(source)}.{sanitized}``, or just ``{sanitized}`` without a source."""
        if self.source:
            source_hash = hashlib.md5(self.source.encode('utf-8')).hexdigest()
            return f'{source_hash}.{self.sanitized_name}'
        return self.sanitized_name


class InstallationResult(BaseModel):
    """Outcome of installing the Helper.

    A failed result may still carry the paths that were computed before the
    failure, so callers can report where the installation was attempted.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    helper_executable: Path | None = None
    helper_context_directory: Path | None = None
    error_message: str | None = None

    @classmethod
    def succeeded(cls, helper_executable: Path, helper_context_directory: Path) -> 'InstallationResult':
        return cls(
            success=True,
            helper_executable=helper_executable,
            helper_context_directory=helper_context_directory,
        )

    @classmethod
    def failed(
        cls,
        error_message: str,
        helper_executable: Path | None = None,
        helper_context_directory: Path | None = None,
    ) -> 'InstallationResult':
        return cls(
            success=False,
            helper_executable=helper_executable,
            helper_context_directory=helper_context_directory,
            error_message=error_message,
        )

    def __str__(self) -> str:
        if self.success:
            return (
                f'InstallationResult(success=True, '
                f'helper_executable={self.helper_executable}, '
                f'helper_context_directory={self.helper_context_directory})'
            )
        return f'InstallationResult(success=False, error_message={self.error_message!r})'


class UpdateType(StrEnum):
    """What an update pass did to the Helper."""

    INSTALLED = "installed"
    UPDATED = "updated"
    REMOVED = "removed"
    NO_ACTION = "no_action"
    FAILED = "failed"


class UpdateResult(BaseModel):
    """Outcome of reconciling the Helper with the application's services."""

    model_config = ConfigDict(frozen=True)

    type: UpdateType
    installation_result: InstallationResult | None = None
    error_message: str | None = None

    @property
    def success(self) -> bool:
        return self.type is not UpdateType.FAILED

    @classmethod
    def installed(cls, installation_result: InstallationResult) -> 'UpdateResult':
        return cls(type=UpdateType.INSTALLED, installation_result=installation_result)

    @classmethod
    def updated(cls, installation_result: InstallationResult) -> 'UpdateResult':
        return cls(type=UpdateType.UPDATED, installation_result=installation_result)

    @classmethod
    def removed(cls) -> 'UpdateResult':
        return cls(type=UpdateType.REMOVED)

    @classmethod
    def no_action(cls) -> 'UpdateResult':
        return cls(type=UpdateType.NO_ACTION)

    @classmethod
    def failure(cls, error_message: str) -> 'UpdateResult':
        return cls(type=UpdateType.FAILED, error_message=error_message)


# Uninstall manifest entries


class FileType(StrEnum):
    """File type classification for uninstall manifest file entries."""

    BINARY = "binary"
    SCRIPT = "script"
    LINK = "link"
    CONFIG = "config"
    ICON = "icon"
    METADATA = "metadata"


class CleanupStrategy(StrEnum):
    """How an uninstaller treats a recorded directory."""

    ALWAYS = "always"
    IF_EMPTY = "ifEmpty"
    CONTENTS_ONLY = "contentsOnly"


class ManifestFileEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    type: FileType
    description: str | None = None


class ManifestDirectoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    cleanup: CleanupStrategy
    description: str | None = None


class UninstallManifest(BaseModel):
    """Files and directories an uninstaller must clean up."""

    model_config = ConfigDict(frozen=True)

    files: tuple[ManifestFileEntry, ...] = ()
    directories: tuple[ManifestDirectoryEntry, ...] = ()
