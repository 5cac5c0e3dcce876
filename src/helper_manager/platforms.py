"""Platform detection for helper-manager.

The Helper lives in a different place, is copied differently, and is killed
differently on each operating system. Components take an explicit
``Platform`` (defaulting to the detected one) and look up their per-platform
behavior in small dispatch tables keyed by this enum.
"""

import sys
from enum import StrEnum


class Platform(StrEnum):
    """Operating systems the Helper is managed on."""

    MAC = 'mac'
    WINDOWS = 'windows'
    LINUX = 'linux'

    @classmethod
    def current(cls) -> 'Platform':
        """Detect the current platform from ``sys.platform``.

        Returns:
            Platform.WINDOWS, Platform.MAC, or Platform.LINUX (for every
            other POSIX system)
        """
        if sys.platform == 'win32':
            return cls.WINDOWS
        elif sys.platform == 'darwin':
            return cls.MAC
        else:
            return cls.LINUX

    @property
    def has_bundles(self) -> bool:
        """True where an application is a directory tree handled as one unit."""
        return self is Platform.MAC

    @property
    def is_windows(self) -> bool:
        return self is Platform.WINDOWS


def resolve_platform(platform: Platform | None) -> Platform:
    """Return ``platform`` or the detected platform when it is None."""
    return platform if platform is not None else Platform.current()
