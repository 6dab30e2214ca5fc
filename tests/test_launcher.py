"""Tests for starting Photoshop and repairing the prefix before launch."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from photoshop_linux.errors import InstallationRecordError, PrerequisiteMissing
from photoshop_linux.launcher import fix_msvcp140, launch, windows_arguments
from tests.conftest import make_pe


@pytest.fixture
def quiet():
    """Silence notifications and the Windows version check."""
    with patch("photoshop_linux.launcher.notify"), \
            patch("photoshop_linux.launcher.Wine.ensure_windows_10", return_value=False), \
            patch("photoshop_linux.launcher.fix_msvcp140", return_value=True):
        yield


def install_exe(context):
    exe = context.drive_c / "Program Files/Adobe/Adobe Photoshop 2021/Photoshop.exe"
    exe.parent.mkdir(parents=True)
    exe.write_bytes(b"MZ")
    return exe


class TestLaunch:
    """Test the launch sequence."""

    def test_requires_record(self, config):
        with pytest.raises(InstallationRecordError):
            launch(config)

    def test_requires_prefix(self, config, installed, quiet):
        installed.wine_prefix.rmdir()
        with pytest.raises(PrerequisiteMissing):
            launch(config)

    def test_missing_executable(self, config, installed, quiet):
        assert launch(config) == 1

    def test_runs_photoshop(self, config, installed, quiet):
        exe = install_exe(installed)
        with patch("photoshop_linux.launcher.subprocess.run",
                   return_value=subprocess.CompletedProcess([], 0)) as run:
            assert launch(config) == 0
        argv = run.call_args.args[0]
        env = run.call_args.kwargs["env"]
        assert argv == ["wine", str(exe)]
        assert env["WINEPREFIX"] == str(installed.wine_prefix)
        assert "WINEDLLOVERRIDES" in env
        assert installed.runtime_log.is_file()

    def test_passes_existing_files(self, config, installed, quiet, tmp_path):
        install_exe(installed)
        image = tmp_path / "image.psd"
        image.write_bytes(b"8BPS")
        with patch("photoshop_linux.launcher.subprocess.run",
                   return_value=subprocess.CompletedProcess([], 3)) as run, \
                patch("photoshop_linux.wine.command_exists", return_value=False):
            assert launch(config, [str(image), str(tmp_path / "missing.psd")]) == 3
        assert run.call_args.args[0][2:] == ["Z:" + str(image.resolve()).replace("/", "\\")]

    def test_windows_arguments_skip_missing(self, tmp_path):
        wine = MagicMock()
        wine.to_windows_path.return_value = "Z:\\a.psd"
        existing = tmp_path / "a.psd"
        existing.write_bytes(b"8BPS")
        assert windows_arguments(wine, [str(existing), str(tmp_path / "b.psd")]) == ["Z:\\a.psd"]


class TestFixMsvcp140:
    """Test replacing an ARM64 runtime DLL."""

    @pytest.fixture
    def dll(self, installed):
        path = installed.drive_c / "windows/system32/msvcp140.dll"
        path.parent.mkdir(parents=True)
        return path

    def test_missing_dll(self, installed):
        assert fix_msvcp140(MagicMock(), installed) is True

    def test_correct_architecture(self, installed, dll):
        make_pe(dll, 0x8664)
        wine = MagicMock()
        assert fix_msvcp140(wine, installed) is True
        wine.run.assert_not_called()

    def test_repaired_by_redistributable(self, installed, dll):
        make_pe(dll, 0xAA64)
        wine = MagicMock()
        wine.run.side_effect = lambda *args: make_pe(dll, 0x8664) and 0
        redist = installed.cache_path / "vc_redist.x64.exe"
        with patch("photoshop_linux.launcher.download_component", return_value=redist) as download:
            assert fix_msvcp140(wine, installed) is True
        download.assert_called_once()
        wine.run.assert_called_once_with(str(redist), "/quiet", "/norestart")
        assert not dll.with_name("msvcp140.dll.bak").exists()

    def test_restores_backup_when_repair_fails(self, installed, dll):
        make_pe(dll, 0xAA64)
        original = dll.read_bytes()
        with patch("photoshop_linux.launcher.download_component", return_value=Path("/nonexistent")):
            assert fix_msvcp140(MagicMock(), installed) is False
        assert dll.read_bytes() == original
        assert not dll.with_name("msvcp140.dll.bak").exists()
