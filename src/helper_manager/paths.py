"""Cross-platform path helpers for the Helper application.

This module maps an application name (and, off macOS, the application's
install directory) to the three locations a Helper occupies:

- the Helper directory
  - macOS: ~/Applications/{App Name} Helper
  - Windows/Linux: {appDirectory}/helpers
- the Helper executable or bundle
  - macOS: {helper dir}/{App Name} Helper.app
  - Windows: {helper dir}/{app-name}-helper.exe
  - Linux: {helper dir}/{app-name}-helper
- the Helper context directory: {helper dir}/.jdeploy-files

All functions are pure and return Path objects. Directories are NOT created
automatically; callers should call ``path.mkdir(parents=True, exist_ok=True)``
as needed.
"""

import re
from dataclasses import dataclass
from pathlib import Path

from .config import HelperSettings
from .errors import InvalidArgumentError, require_name
from .platforms import Platform, resolve_platform

__all__ = [
    'HelperLocation',
    'derive_helper_name',
    'get_helper_context_directory',
    'get_helper_directory',
    'get_helper_executable_path',
    'get_locks_dir',
    'get_logs_dir',
    'normalize_app_name',
    'resolve_helper_location',
]

_DISALLOWED_CHARS = re.compile(r'[^a-z0-9\-]')


@dataclass(frozen=True)
class HelperLocation:
    """Where a Helper lives on disk.

    ``executable_path`` and ``context_dir`` are always children of
    ``install_dir``.
    """

    install_dir: Path
    executable_path: Path
    context_dir: Path


def normalize_app_name(app_name: str) -> str:
    """Lowercase, turn spaces into hyphens, drop everything outside [a-z0-9-].

    >>> normalize_app_name('My App')
    'my-app'
    """
    return _DISALLOWED_CHARS.sub('', app_name.lower().replace(' ', '-'))


def derive_helper_name(app_title: str, platform: Platform | None = None) -> str:
    """Convert an application title to a Helper name following platform conventions.

    Args:
        app_title: The application title (e.g., "My App")
        platform: Target platform (default: detected)

    Returns:
        "My App Helper" on macOS, "my-app-helper" elsewhere

    Raises:
        InvalidArgumentError: If app_title is blank
    """
    require_name(app_title, 'appTitle')
    if resolve_platform(platform).has_bundles:
        return f'{app_title} Helper'
    return f'{normalize_app_name(app_title)}-helper'


def get_helper_directory(
    app_name: str,
    app_directory: Path | str | None = None,
    *,
    platform: Platform | None = None,
    settings: HelperSettings | None = None,
) -> Path:
    """Get the directory the Helper is installed into.

    Args:
        app_name: The application name (e.g., "My App")
        app_directory: The application installation directory (ignored on macOS)
        platform: Target platform (default: detected)
        settings: Settings supplying the home directory (default: fresh settings)

    Returns:
        Path to the Helper directory (not created automatically)

    Raises:
        InvalidArgumentError: If app_name is blank, or app_directory is
            missing on Windows/Linux
    """
    require_name(app_name, 'appName')
    platform = resolve_platform(platform)

    if platform.has_bundles:
        settings = settings or HelperSettings()
        return settings.applications_dir / f'{app_name} Helper'

    if app_directory is None:
        raise InvalidArgumentError('appDirectory cannot be null for Windows/Linux')
    return Path(app_directory) / 'helpers'


def get_helper_executable_path(
    app_name: str,
    app_directory: Path | str | None = None,
    *,
    platform: Platform | None = None,
    settings: HelperSettings | None = None,
) -> Path:
    """Get the full path to the Helper executable (or .app bundle on macOS).

    Raises:
        InvalidArgumentError: Same conditions as get_helper_directory()
    """
    platform = resolve_platform(platform)
    settings = settings or HelperSettings()
    helper_dir = get_helper_directory(
        app_name, app_directory, platform=platform, settings=settings
    )

    if platform.has_bundles:
        return helper_dir / f'{app_name} Helper.{settings.bundle_extension}'
    elif platform.is_windows:
        return helper_dir / f'{derive_helper_name(app_name, platform)}.exe'
    else:
        return helper_dir / derive_helper_name(app_name, platform)


def get_helper_context_directory(
    app_name: str,
    app_directory: Path | str | None = None,
    *,
    platform: Platform | None = None,
    settings: HelperSettings | None = None,
) -> Path:
    """Get the Helper's private context directory.

    This directory holds the application context (app.xml, icon.png, ...)
    the Helper uses to know which application it is helping.
    """
    settings = settings or HelperSettings()
    helper_dir = get_helper_directory(
        app_name, app_directory, platform=platform, settings=settings
    )
    return helper_dir / settings.context_dirname


def resolve_helper_location(
    app_name: str,
    app_directory: Path | str | None = None,
    *,
    platform: Platform | None = None,
    settings: HelperSettings | None = None,
) -> HelperLocation:
    """Resolve all three Helper locations in one call."""
    platform = resolve_platform(platform)
    settings = settings or HelperSettings()
    kwargs = {'platform': platform, 'settings': settings}
    return HelperLocation(
        install_dir=get_helper_directory(app_name, app_directory, **kwargs),
        executable_path=get_helper_executable_path(app_name, app_directory, **kwargs),
        context_dir=get_helper_context_directory(app_name, app_directory, **kwargs),
    )


def get_locks_dir(settings: HelperSettings | None = None) -> Path:
    """Get the per-user directory holding Helper lock and signal files.

    Returns:
        Path like ~/.jdeploy/locks (not created automatically)
    """
    return (settings or HelperSettings()).locks_dir


def get_logs_dir(settings: HelperSettings | None = None) -> Path:
    """Get the per-user logs directory (not created automatically)."""
    return (settings or HelperSettings()).logs_dir
