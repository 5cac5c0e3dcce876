"""Self-deleting cleanup scripts for removing a Helper from the outside.

A running Helper cannot delete its own executable (Windows refuses outright,
and deleting a running macOS bundle is fragile). Instead it writes a small
script that waits for it to exit, removes the Helper files, then removes
itself, and launches that script detached before quitting.

Scripts are bash on macOS/Linux and batch on Windows.
"""

import os
import stat
import subprocess
import tempfile
from pathlib import Path

from loguru import logger

from ..config import HelperSettings
from ..errors import HelperIOError, InvalidArgumentError
from ..platforms import Platform, resolve_platform

SCRIPT_PREFIX = 'helper-cleanup-'


def escape_for_bash(value: str) -> str:
    """Escape a value for use inside bash double quotes."""
    for ch in ('\\', '"', '$', '`'):
        value = value.replace(ch, '\\' + ch)
    return value


def escape_for_batch(value: str) -> str:
    """Escape a value for use inside batch double quotes."""
    return value.replace('%', '%%')


def _abs(path: Path) -> str:
    return str(Path(path).absolute())


class CleanupScriptGenerator:
    """Writes and launches the self-deleting cleanup script."""

    def __init__(
        self,
        platform: Platform | None = None,
        settings: HelperSettings | None = None,
    ) -> None:
        self._platform = resolve_platform(platform)
        self._delay = (settings or HelperSettings()).removal.script_delay_seconds

    def unix_script_content(
        self,
        helper_path: Path,
        context_dir: Path,
        helper_dir: Path | None = None,
    ) -> str:
        lines = [
            '#!/bin/bash',
            f'sleep {self._delay}',
            f'rm -rf "{escape_for_bash(_abs(helper_path))}"',
            f'rm -rf "{escape_for_bash(_abs(context_dir))}"',
        ]
        if helper_dir is not None:
            lines.append(f'rmdir "{escape_for_bash(_abs(helper_dir))}" 2>/dev/null')
        # -- guards against a script name starting with "-"
        lines.append('rm -- "$0"')
        return '\n'.join(lines) + '\n'

    def windows_script_content(
        self,
        helper_path: Path,
        context_dir: Path,
        helper_dir: Path | None = None,
        is_directory: bool = False,
    ) -> str:
        helper = escape_for_batch(_abs(helper_path))
        lines = [
            '@echo off',
            f'timeout /t {self._delay} /nobreak > nul',
            f'rmdir /s /q "{helper}"' if is_directory else f'del /f /q "{helper}"',
            f'rmdir /s /q "{escape_for_batch(_abs(context_dir))}"',
        ]
        if helper_dir is not None:
            lines.append(f'rmdir "{escape_for_batch(_abs(helper_dir))}" 2>nul')
        lines.append('del "%~f0"')
        return '\n'.join(lines) + '\n'

    def generate(
        self,
        helper_path: Path | None,
        context_dir: Path | None,
        helper_dir: Path | None = None,
    ) -> Path:
        """Write the cleanup script to a temporary file.

        Args:
            helper_path: Helper executable or .app bundle
            context_dir: Helper context directory
            helper_dir: Parent directory, removed only if left empty

        Returns:
            Path to the generated script

        Raises:
            InvalidArgumentError: If helper_path or context_dir is None
            HelperIOError: If the script cannot be written
        """
        if helper_path is None:
            raise InvalidArgumentError('helperPath cannot be null')
        if context_dir is None:
            raise InvalidArgumentError('helperContextDir cannot be null')

        if self._platform.is_windows:
            content = self.windows_script_content(
                helper_path, context_dir, helper_dir, is_directory=Path(helper_path).is_dir()
            )
            suffix, newline = '.bat', '\r\n'
        else:
            content = self.unix_script_content(helper_path, context_dir, helper_dir)
            suffix, newline = '.sh', '\n'

        try:
            fd, name = tempfile.mkstemp(prefix=SCRIPT_PREFIX, suffix=suffix)
            with os.fdopen(fd, 'w', encoding='utf-8', newline=newline) as f:
                f.write(content)
            script = Path(name)
            if not self._platform.is_windows:
                script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except OSError as e:
            raise HelperIOError(f'Failed to write cleanup script for {helper_path}: {e}') from e

        logger.info("Generated cleanup script: {}", script)
        return script

    def execute(self, script: Path | None) -> None:
        """Launch the script detached and return without waiting.

        Raises:
            InvalidArgumentError: If the script is None or missing
            HelperIOError: If the script cannot be launched
        """
        if script is None:
            raise InvalidArgumentError('script cannot be null')
        script = Path(script)
        if not script.exists():
            raise InvalidArgumentError(f'script does not exist: {script.absolute()}')

        logger.info("Executing cleanup script: {}", script.absolute())
        try:
            if self._platform.is_windows:
                subprocess.Popen(
                    ['cmd', '/c', 'start', '/min', 'cmd', '/c', _abs(script)],
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    creationflags=getattr(subprocess, 'DETACHED_PROCESS', 0)
                    | getattr(subprocess, 'CREATE_NEW_PROCESS_GROUP', 0),
                )
            else:
                # nohup keeps the script alive after this process exits
                subprocess.Popen(
                    ['nohup', _abs(script)],
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    cwd=str(script.absolute().parent),
                    start_new_session=True,
                )
        except OSError as e:
            raise HelperIOError(f'Failed to launch cleanup script {script}: {e}') from e

        logger.info("Launched cleanup script as detached process")
