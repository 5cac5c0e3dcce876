"""Helper liveness detection through an advisory file lock.

A running Helper holds an exclusive lock on
``~/.jdeploy/locks/{fully_qualified_name}.lock`` for its whole lifetime.
The installer never reads process tables: it probes the lock instead.

- POSIX file locking via fcntl.flock (non-blocking)
- Windows byte-range locking via msvcrt.locking (non-blocking, 1 byte)

The lock is advisory and released by the OS when the holder dies, so a
stale lock file left behind by a crash never reads as "running".
"""

import errno
import sys
from pathlib import Path
from typing import IO

from loguru import logger

from ..config import HelperSettings
from ..models import HelperIdentity

if sys.platform == 'win32':
    import msvcrt
else:
    import fcntl

# errno values meaning "somebody else holds the lock"
_HELD_ERRNOS = {errno.EACCES, errno.EAGAIN, getattr(errno, 'EDEADLOCK', errno.EDEADLK)}


def _try_lock(handle: IO[bytes]) -> bool:
    """Try to take an exclusive lock without blocking.

    Returns:
        True if acquired, False if another holder has it.

    Raises:
        OSError: For any failure other than contention
    """
    try:
        if sys.platform == 'win32':
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
        else:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except BlockingIOError:
        return False
    except OSError as e:
        if e.errno in _HELD_ERRNOS:
            return False
        raise
    return True


def _unlock(handle: IO[bytes]) -> None:
    if sys.platform == 'win32':
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


class HelperProcessMonitor:
    """Answers "is the Helper for this package running?"."""

    def __init__(self, settings: HelperSettings | None = None) -> None:
        self._settings = settings or HelperSettings()

    @property
    def locks_dir(self) -> Path:
        return self._settings.locks_dir

    def lock_file(self, identity: HelperIdentity) -> Path:
        return self.locks_dir / f'{identity.fully_qualified_name}.lock'

    def shutdown_signal_file(self, identity: HelperIdentity) -> Path:
        """Path whose existence asks the Helper to exit."""
        return self.locks_dir / f'{identity.fully_qualified_name}.shutdown'

    def is_running(self, identity: HelperIdentity) -> bool:
        """Check whether the Helper for ``identity`` is running.

        Opens the lock file and tries to take the lock without blocking. If
        that succeeds the lock is released at once and the Helper is
        reported as not running.

        Returns:
            True if another holder has the lock. False if the lock file is
            missing, the lock could be taken, or the probe itself failed.
        """
        lock_file = self.lock_file(identity)
        if not lock_file.exists():
            return False

        try:
            with open(lock_file, 'r+b') as handle:
                if not _try_lock(handle):
                    return True
                _unlock(handle)
                return False
        except OSError as e:
            # Unknown state reads as "not running"
            logger.warning("Could not probe Helper lock {}: {}", lock_file, e)
            return False


class HelperLock:
    """The lock a running Helper holds on its own lock file.

    Usage:
        with HelperLock(identity) as lock:
            if not lock.is_locked:
                sys.exit("Helper already running")
            run_helper()
    """

    def __init__(self, identity: HelperIdentity, settings: HelperSettings | None = None) -> None:
        self.identity = identity
        self.lock_file = HelperProcessMonitor(settings).lock_file(identity)
        self._file: IO[bytes] | None = None

    @property
    def is_locked(self) -> bool:
        return self._file is not None

    def try_acquire(self) -> bool:
        """Attempt to acquire the lock.

        Returns:
            True if acquired (or already held by this object), False if
            another Helper holds it.
        """
        if self._file is not None:
            return True

        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        handle = open(self.lock_file, 'a+b')
        try:
            acquired = _try_lock(handle)
        except OSError:
            handle.close()
            raise

        if not acquired:
            handle.close()
            logger.info("Helper lock already held: {}", self.lock_file)
            return False

        self._file = handle
        logger.debug("Acquired Helper lock {}", self.lock_file)
        return True

    def release(self) -> None:
        """Release the lock and delete the lock file.

        Safe to call multiple times or without prior acquire.
        """
        if self._file is None:
            return

        try:
            _unlock(self._file)
            self._file.close()
            self.lock_file.unlink(missing_ok=True)
            logger.debug("Released Helper lock {}", self.lock_file)
        except OSError as e:
            logger.warning("Error releasing Helper lock {}: {}", self.lock_file, e)
        finally:
            self._file = None

    def __enter__(self) -> 'HelperLock':
        self.try_acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def is_shutdown_requested(identity: HelperIdentity, settings: HelperSettings | None = None) -> bool:
    """Helper-side check for the shutdown signal file."""
    return HelperProcessMonitor(settings).shutdown_signal_file(identity).exists()
