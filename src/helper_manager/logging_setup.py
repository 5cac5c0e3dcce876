"""Loguru logging setup for helper-manager.

This module provides standardized logging configuration using Loguru, plus the
``InstallationLogger`` collaborator interface the installer passes into the
Helper services.

Usage:
    from .logging_setup import setup_logging, get_logger

    # At installer startup
    setup_logging()

    # In modules
    logger = get_logger(__name__)
    logger.info("Copying installer", source=str(src))

    # Installation log handed to services
    install_log = LoguruInstallationLogger(app_name="My App")
    install_log.section("Installing Helper Application")

Features:
    - Async-safe with enqueue=True
    - Automatic rotation (10 MB) and retention (7 days)
    - Colored console output for development
    - JSON file output for production
"""

import sys
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from .config import HelperSettings

# Default console format with colors
CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

# Simple format without colors (for file output)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | "
    "{level: <8} | "
    "{name}:{function}:{line} | "
    "{message}"
)

SECTION_RULE = "=" * 60


def setup_logging(
    log_level: str | None = None,
    console: bool = True,
    file: bool = True,
    log_dir: Path | None = None,
    serialize_file: bool = True,
    settings: HelperSettings | None = None,
) -> None:
    """Configure logging with console and file handlers.

    Uses ``enqueue=True`` for thread-safe writes. Callers should call
    ``logger.complete()`` before process exit to drain the queue.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to the level in settings.
        console: Enable console (stderr) output.
        file: Enable file output.
        log_dir: Directory for log files (default: ~/.jdeploy/logs).
        serialize_file: Use JSON format for file logs.
        settings: Settings supplying defaults (default: fresh settings).
    """
    settings = settings or HelperSettings()
    logger.remove()

    if log_level is None:
        log_level = settings.log_level

    if console and sys.stderr is not None:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=True,
            backtrace=True,
            diagnose=True,
            enqueue=True,
        )

    if file:
        if log_dir is None:
            log_dir = settings.logs_dir
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(log_dir / "helper-manager.log"),
            level=log_level,
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="7 days",
            compression="gz",
            serialize=serialize_file,
            enqueue=True,
            backtrace=True,
            diagnose=False,  # SECURITY: no variable dumps in files
        )


def get_logger(name: str, **context: Any) -> "logger":
    """Get a context-bound logger.

    Args:
        name: Logger name (usually __name__)
        **context: Additional context to bind to all log messages

    Returns:
        Logger instance with bound context
    """
    return logger.bind(name=name, **context)


@runtime_checkable
class InstallationLogger(Protocol):
    """Installation log consumed by the Helper services.

    Every service accepts ``None`` in place of a logger, in which case the
    calls are skipped.
    """

    def section(self, title: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...


class LoguruInstallationLogger:
    """InstallationLogger backed by a bound loguru logger."""

    def __init__(self, **context: Any) -> None:
        self._logger = logger.bind(component="installation", **context)

    def section(self, title: str) -> None:
        self._logger.info(SECTION_RULE)
        self._logger.info("{}", title)
        self._logger.info(SECTION_RULE)

    def info(self, message: str) -> None:
        self._logger.info("{}", message)

    def warning(self, message: str) -> None:
        self._logger.warning("{}", message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.opt(exception=exc).error("{}", message)
        else:
            self._logger.error("{}", message)


class RecordingInstallationLogger:
    """InstallationLogger that keeps every call in memory.

    Handy for installer front ends that show the log after the fact, and
    for tests.
    """

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def section(self, title: str) -> None:
        self.records.append(("section", title))

    def info(self, message: str) -> None:
        self.records.append(("info", message))

    def warning(self, message: str) -> None:
        self.records.append(("warning", message))

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.records.append(("error", message))

    def messages(self, level: str) -> list[str]:
        return [msg for lvl, msg in self.records if lvl == level]


class NullInstallationLogger:
    """InstallationLogger that drops every call."""

    def section(self, title: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def error(self, message: str, exc: BaseException | None = None) -> None:
        pass


def or_null(install_log: InstallationLogger | None) -> InstallationLogger:
    """Return ``install_log``, or a logger that ignores everything when None."""
    return install_log if install_log is not None else NullInstallationLogger()
