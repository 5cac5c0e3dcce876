"""Install, update and remove the background Helper of a desktop application.

The Helper is a copy of the application's installer that runs in the
background (tray/menu-bar) for as long as the application declares
background services. This package keeps it in sync on macOS, Windows and
Linux.
"""

from .config import HelperSettings, load_settings
from .errors import CopyTimeoutError, HelperIOError, InvalidArgumentError, LauncherPathError
from .logging_setup import LoguruInstallationLogger, get_logger, setup_logging
from .models import HelperIdentity, InstallationResult, UpdateResult, UpdateType
from .paths import HelperLocation, derive_helper_name, resolve_helper_location
from .platforms import Platform
from .services import (
    HelperInstallationService,
    HelperSelfDeleteService,
    HelperUpdateService,
    UninstallManifestBuilder,
    add_helper_to_manifest,
)

__version__ = "0.1.0"

__all__ = [
    "CopyTimeoutError",
    "HelperIOError",
    "HelperIdentity",
    "HelperInstallationService",
    "HelperLocation",
    "HelperSelfDeleteService",
    "HelperSettings",
    "HelperUpdateService",
    "InstallationResult",
    "InvalidArgumentError",
    "LauncherPathError",
    "LoguruInstallationLogger",
    "Platform",
    "UninstallManifestBuilder",
    "UpdateResult",
    "UpdateType",
    "add_helper_to_manifest",
    "derive_helper_name",
    "get_logger",
    "load_settings",
    "resolve_helper_location",
    "setup_logging",
]
