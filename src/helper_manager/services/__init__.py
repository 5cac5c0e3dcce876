"""Helper lifecycle services: install, update/remove, manifest, self-delete."""

from .installation import HelperInstallationService
from .manifest import UninstallManifestBuilder, add_helper_to_manifest
from .self_delete import HelperSelfDeleteService
from .update import HelperUpdateService

__all__ = [
    "HelperInstallationService",
    "HelperSelfDeleteService",
    "HelperUpdateService",
    "UninstallManifestBuilder",
    "add_helper_to_manifest",
]
