"""Tests for the installer copy service."""

import os
import stat
import subprocess
import sys
from unittest.mock import patch

import pytest

from helper_manager.core.copy_service import HelperCopyService, delete_recursively
from helper_manager.errors import CopyTimeoutError, HelperIOError, InvalidArgumentError
from helper_manager.logging_setup import RecordingInstallationLogger
from helper_manager.platforms import Platform


@pytest.fixture
def executable(tmp_path):
    exe = tmp_path / "src" / "my-app-installer"
    exe.parent.mkdir()
    exe.write_bytes(b"#!/bin/sh\necho hi\n")
    exe.chmod(0o755)
    return exe


@pytest.fixture
def bundle(tmp_path):
    app = tmp_path / "src" / "Installer.app"
    (app / "Contents" / "MacOS").mkdir(parents=True)
    (app / "Contents" / "MacOS" / "Installer").write_bytes(b"binary")
    (app / "Contents" / "Info.plist").write_text("<plist/>", encoding="utf-8")
    return app


class TestCopyInstallerValidation:
    def test_none_source(self, tmp_path):
        with pytest.raises(InvalidArgumentError, match="Source cannot be null"):
            HelperCopyService(platform=Platform.LINUX).copy_installer(None, tmp_path / "dst")

    def test_missing_source(self, tmp_path):
        with pytest.raises(InvalidArgumentError, match="Source does not exist"):
            HelperCopyService(platform=Platform.LINUX).copy_installer(
                tmp_path / "nope", tmp_path / "dst"
            )

    def test_none_destination(self, executable):
        with pytest.raises(InvalidArgumentError, match="Destination cannot be null"):
            HelperCopyService(platform=Platform.LINUX).copy_installer(executable, None)


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
class TestLinuxCopy:
    """Attribute-preserving copy with executable bit propagation."""

    def test_copies_file_and_creates_parents(self, executable, tmp_path):
        dest = tmp_path / "app" / "helpers" / "my-app-helper"
        HelperCopyService(platform=Platform.LINUX).copy_installer(executable, dest)

        assert dest.read_bytes() == executable.read_bytes()
        assert os.access(dest, os.X_OK)

    def test_executable_bit_added_when_source_executable(self, tmp_path):
        src = tmp_path / "tool"
        src.write_bytes(b"x")
        src.chmod(0o700)
        dest = tmp_path / "out" / "tool"

        HelperCopyService(platform=Platform.LINUX).copy_installer(src, dest)

        assert dest.stat().st_mode & stat.S_IXUSR

    def test_non_executable_stays_non_executable(self, tmp_path):
        src = tmp_path / "data.txt"
        src.write_text("plain", encoding="utf-8")
        src.chmod(0o644)
        dest = tmp_path / "out" / "data.txt"

        HelperCopyService(platform=Platform.LINUX).copy_installer(src, dest)

        assert not dest.stat().st_mode & stat.S_IXUSR

    def test_reinstall_is_idempotent(self, bundle, tmp_path):
        dest = tmp_path / "helpers" / "copy.app"
        service = HelperCopyService(platform=Platform.LINUX)

        service.copy_installer(bundle, dest)
        (dest / "orphan.txt").write_text("left over", encoding="utf-8")
        service.copy_installer(bundle, dest)

        assert not (dest / "orphan.txt").exists()
        assert (dest / "Contents" / "MacOS" / "Installer").read_bytes() == b"binary"
        assert (dest / "Contents" / "Info.plist").exists()

    def test_linked_subdirectory_is_copied(self, bundle, tmp_path):
        shared = tmp_path / "shared"
        shared.mkdir()
        (shared / "libhelper.so").write_bytes(b"lib")
        (bundle / "Contents" / "Frameworks").symlink_to(shared, target_is_directory=True)
        dest = tmp_path / "helpers" / "copy.app"

        HelperCopyService(platform=Platform.LINUX).copy_installer(bundle, dest)

        copied = dest / "Contents" / "Frameworks" / "libhelper.so"
        assert copied.read_bytes() == b"lib"
        assert not copied.parent.is_symlink()


class TestWindowsCopy:
    def test_plain_copy_overwrites(self, executable, tmp_path):
        dest = tmp_path / "helpers" / "my-app-helper.exe"
        dest.parent.mkdir()
        dest.write_bytes(b"old")

        HelperCopyService(platform=Platform.WINDOWS).copy_installer(executable, dest)

        assert dest.read_bytes() == executable.read_bytes()


class TestMacCopy:
    """ditto is mocked: these run on any host."""

    def test_invokes_ditto(self, bundle, tmp_path):
        dest = tmp_path / "Applications" / "My App Helper" / "My App Helper.app"
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="")

        with patch("helper_manager.core.copy_service.subprocess.run", return_value=completed) as run:
            HelperCopyService(platform=Platform.MAC).copy_installer(bundle, dest)

        argv = run.call_args.args[0]
        assert argv == ["ditto", str(bundle.absolute()), str(dest.absolute())]
        assert run.call_args.kwargs["stderr"] == subprocess.STDOUT
        assert run.call_args.kwargs["timeout"] == 120.0
        assert dest.parent.is_dir()

    def test_nonzero_exit_raises_with_output(self, bundle, tmp_path):
        failed = subprocess.CompletedProcess(args=[], returncode=1, stdout="ditto: no space\n")

        with patch("helper_manager.core.copy_service.subprocess.run", return_value=failed):
            with pytest.raises(HelperIOError, match="exit code 1.*no space"):
                HelperCopyService(platform=Platform.MAC).copy_installer(bundle, tmp_path / "d.app")

    def test_empty_output_reports_unknown_error(self, bundle, tmp_path):
        failed = subprocess.CompletedProcess(args=[], returncode=2, stdout="")

        with patch("helper_manager.core.copy_service.subprocess.run", return_value=failed):
            with pytest.raises(HelperIOError, match="Unknown error"):
                HelperCopyService(platform=Platform.MAC).copy_installer(bundle, tmp_path / "d.app")

    def test_timeout(self, bundle, tmp_path, settings):
        custom = settings.model_copy(
            update={"copying": settings.copying.model_copy(update={"bundle_copy_timeout_seconds": 3.0})}
        )
        with patch(
            "helper_manager.core.copy_service.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="ditto", timeout=3.0),
        ):
            with pytest.raises(CopyTimeoutError, match="timed out after 3 seconds"):
                HelperCopyService(platform=Platform.MAC, settings=custom).copy_installer(
                    bundle, tmp_path / "d.app"
                )

    def test_missing_ditto(self, bundle, tmp_path):
        with patch(
            "helper_manager.core.copy_service.subprocess.run",
            side_effect=FileNotFoundError("ditto"),
        ):
            with pytest.raises(HelperIOError):
                HelperCopyService(platform=Platform.MAC).copy_installer(bundle, tmp_path / "d.app")


class TestCopyContextDirectory:
    def test_copies_tree(self, context_source, tmp_path):
        (context_source / "nested").mkdir()
        (context_source / "nested" / "app.xml").write_text("<app/>", encoding="utf-8")
        dest = tmp_path / "helpers" / ".jdeploy-files"

        HelperCopyService(platform=Platform.MAC).copy_context_directory(context_source, dest)

        assert (dest / "config.json").read_text(encoding="utf-8") == '{"name": "my-app"}'
        assert (dest / "nested" / "app.xml").exists()

    def test_replaces_existing_destination(self, context_source, tmp_path):
        dest = tmp_path / "ctx-copy"
        dest.mkdir()
        (dest / "stale.txt").write_text("old", encoding="utf-8")

        HelperCopyService(platform=Platform.LINUX).copy_context_directory(context_source, dest)

        assert not (dest / "stale.txt").exists()
        assert (dest / "icon.png").exists()

    def test_rejects_file_source(self, tmp_path):
        src = tmp_path / "file.txt"
        src.write_text("x", encoding="utf-8")
        with pytest.raises(InvalidArgumentError):
            HelperCopyService(platform=Platform.LINUX).copy_context_directory(src, tmp_path / "d")

    def test_logs_to_installation_log(self, context_source, tmp_path):
        log = RecordingInstallationLogger()
        HelperCopyService(log, platform=Platform.LINUX).copy_context_directory(
            context_source, tmp_path / "d"
        )
        assert any("Copying context directory" in m for m in log.messages("info"))

    @pytest.mark.skipif(sys.platform == "win32", reason="directory symlinks need privileges")
    def test_linked_subdirectory_is_copied(self, context_source, tmp_path):
        real = tmp_path / "real"
        real.mkdir()
        (real / "shared.txt").write_text("shared", encoding="utf-8")
        (context_source / "lib").symlink_to(real, target_is_directory=True)
        dest = tmp_path / "ctx-copy"

        HelperCopyService(platform=Platform.LINUX).copy_context_directory(context_source, dest)

        assert (dest / "lib" / "shared.txt").read_text(encoding="utf-8") == "shared"
        assert (dest / "config.json").exists()


class TestDeleteRecursively:
    def test_file_and_tree(self, tmp_path):
        f = tmp_path / "f"
        f.write_text("x", encoding="utf-8")
        d = tmp_path / "d"
        (d / "sub").mkdir(parents=True)

        delete_recursively(f)
        delete_recursively(d)

        assert not f.exists()
        assert not d.exists()

    def test_missing_path_raises(self, tmp_path):
        with pytest.raises(HelperIOError, match="Failed to delete"):
            delete_recursively(tmp_path / "missing")
