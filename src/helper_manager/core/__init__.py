"""Core functionality package."""

from .bundle_locator import InstallerBundleLocator
from .cleanup_script import CleanupScriptGenerator, escape_for_batch, escape_for_bash
from .copy_service import HelperCopyService, delete_recursively
from .process_monitor import HelperLock, HelperProcessMonitor, is_shutdown_requested
from .termination import HelperTerminator

__all__ = [
    "CleanupScriptGenerator",
    "HelperCopyService",
    "HelperLock",
    "HelperProcessMonitor",
    "HelperTerminator",
    "InstallerBundleLocator",
    "delete_recursively",
    "escape_for_bash",
    "escape_for_batch",
    "is_shutdown_requested",
]
