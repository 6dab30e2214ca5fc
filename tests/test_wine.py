"""Tests for Wine and Proton GE helpers."""

import os
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from photoshop_linux.config import InstallContext
from photoshop_linux.errors import PrerequisiteMissing, UnsafePathError
from photoshop_linux.wine import (
    Wine,
    apply_dark_mode,
    available_variants,
    dark_mode_block,
    is_safe_proton_path,
    parse_reg_query,
    runtime_environment,
    variant_tag,
    z_drive_path,
)

REG_QUERY_OUTPUT = """
HKEY_LOCAL_MACHINE\\Software\\Microsoft\\Windows NT\\CurrentVersion
    CurrentVersion    REG_SZ    10.0

"""


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout, stderr)


class TestHelpers:
    """Test the pure helper functions."""

    def test_parse_reg_query(self):
        assert parse_reg_query(REG_QUERY_OUTPUT, "CurrentVersion") == "10.0"
        assert parse_reg_query(REG_QUERY_OUTPUT, "Missing") == ""
        assert parse_reg_query("", "CurrentVersion") == ""

    def test_z_drive_path(self):
        assert z_drive_path(Path("/home/user/image.psd")) == "Z:\\home\\user\\image.psd"

    def test_variant_tag(self):
        assert variant_tag("wine-standard") == "wine-standard"
        assert variant_tag("proton-ge", Path("/opt/proton-ge")) == "proton-ge:/opt/proton-ge"
        assert variant_tag("proton-ge") == "proton-ge"

    def test_context_proton_path(self, fake_home):
        context = InstallContext(fake_home / "ps", fake_home / "cache", "proton-ge:/opt/proton")
        assert context.uses_proton is True
        assert context.proton_path == Path("/opt/proton")
        assert InstallContext(fake_home, fake_home, "proton-ge").proton_path is None
        assert InstallContext(fake_home, fake_home, "wine-standard").uses_proton is False

    def test_runtime_environment(self, context):
        env = runtime_environment(context, base={"PATH": "/usr/bin"})
        assert env["WINEPREFIX"] == str(context.wine_prefix)
        assert env["PATH"] == "/usr/bin"
        assert env["WINEDEBUG"] == "-all,+err"
        assert "winemenubuilder.exe=d" in env["WINEDLLOVERRIDES"]
        assert "mshtml=native,builtin" in env["WINEDLLOVERRIDES"]

    def test_dark_mode_block(self):
        block = dark_mode_block()
        assert "[Control Panel\\\\Colors]" in block
        assert '"Window"="35 38 41"' in block

    def test_apply_dark_mode(self, tmp_path):
        assert apply_dark_mode(tmp_path) is False
        user_reg = tmp_path / "user.reg"
        user_reg.write_text("WINE REGISTRY Version 2\n")
        assert apply_dark_mode(tmp_path) is True
        assert user_reg.read_text().startswith("WINE REGISTRY Version 2\n")
        assert "Control Panel" in user_reg.read_text()


class TestProtonDiscovery:
    """Test the Proton GE safety checks."""

    def make_proton(self, root):
        wine_binary = root / "files" / "bin" / "wine"
        wine_binary.parent.mkdir(parents=True)
        wine_binary.write_text("#!/bin/sh\n")
        wine_binary.chmod(0o755)
        return root

    def test_executable_binary_is_accepted(self, tmp_path):
        proton = self.make_proton(tmp_path / "GE-Proton9")
        with patch("photoshop_linux.wine.PROTON_FORBIDDEN_SEGMENTS", ()):
            assert is_safe_proton_path(proton) is True

    def test_forbidden_segment_is_rejected(self, tmp_path):
        proton = self.make_proton(tmp_path / "GE-Proton9")
        with patch("photoshop_linux.wine.PROTON_FORBIDDEN_SEGMENTS", (str(tmp_path),)):
            assert is_safe_proton_path(proton) is False

    def test_symlinked_binary_is_rejected(self, tmp_path):
        proton = tmp_path / "GE-Proton9"
        (proton / "files" / "bin").mkdir(parents=True)
        real = tmp_path / "wine"
        real.write_text("#!/bin/sh\n")
        real.chmod(0o755)
        (proton / "files" / "bin" / "wine").symlink_to(real)
        with patch("photoshop_linux.wine.PROTON_FORBIDDEN_SEGMENTS", ()):
            assert is_safe_proton_path(proton) is False

    def test_steam_directories_are_rejected(self):
        assert is_safe_proton_path(Path("/home/u/.steam/root/compatibilitytools.d/GE")) is False

    def test_missing_binary(self):
        assert is_safe_proton_path(Path("/opt/no-such-proton")) is False

    def test_available_variants(self):
        with patch("photoshop_linux.wine.find_proton_ge", return_value=Path("/opt/proton-ge")), \
                patch("photoshop_linux.wine.command_exists", return_value=True), \
                patch("photoshop_linux.wine.wine_version", return_value="wine-9.0"):
            variants = available_variants()
        assert [v[0] for v in variants] == ["proton-ge", "wine-standard"]
        assert variants[0][2] == Path("/opt/proton-ge")
        assert "wine-9.0" in variants[1][1]

    def test_no_variants(self):
        with patch("photoshop_linux.wine.find_proton_ge", return_value=None), \
                patch("photoshop_linux.wine.command_exists", return_value=False):
            assert available_variants() == []


class TestWineRunner:
    """Test the Wine wrapper with subprocess mocked out."""

    def test_rejects_system_prefix(self):
        with pytest.raises(UnsafePathError):
            Wine(InstallContext(Path("/etc/photoshop"), Path("/etc/cache")))

    def test_env_sets_prefix(self, context):
        env = Wine(context).env({"EXTRA": "1"})
        assert env["WINEPREFIX"] == str(context.wine_prefix)
        assert env["EXTRA"] == "1"

    def test_env_puts_proton_first(self, fake_home, monkeypatch):
        monkeypatch.setenv("PATH", "/usr/bin:.:/bin")
        context = InstallContext(fake_home / "ps", fake_home / "cache", "proton-ge:/opt/proton")
        with patch("photoshop_linux.wine.is_safe_proton_path", return_value=True):
            env = Wine(context).env()
        assert env["PATH"].split(os.pathsep) == ["/opt/proton/files/bin", "/usr/bin", "/bin"]

    def test_reg_add_arguments(self, context):
        with patch("photoshop_linux.wine.subprocess.run", return_value=completed()) as run:
            assert Wine(context).reg_add(r"HKCU\Software\Wine", "csmt", "1", "REG_DWORD") is True
        argv = run.call_args.args[0]
        assert argv == ["wine", "reg", "add", r"HKCU\Software\Wine", "/v", "csmt",
                        "/t", "REG_DWORD", "/d", "1", "/f"]
        assert run.call_args.kwargs["env"]["WINEPREFIX"] == str(context.wine_prefix)

    def test_missing_wine(self, context):
        with patch("photoshop_linux.wine.subprocess.run", side_effect=FileNotFoundError):
            with pytest.raises(PrerequisiteMissing):
                Wine(context).run("setup.exe")

    def test_output_goes_to_log(self, context, tmp_path):
        log_file = tmp_path / "wine.log"
        with patch("photoshop_linux.wine.subprocess.run", return_value=completed(0, "out\n", "err\n")):
            Wine(context, log_file=log_file).winecfg()
        assert log_file.read_text() == "$ winecfg\nout\nerr\n"

    def test_windows_version(self, context):
        with patch("photoshop_linux.wine.subprocess.run", return_value=completed(0, REG_QUERY_OUTPUT)):
            assert Wine(context).windows_version() == "10.0"

    def test_ensure_windows_10_already_set(self, context):
        wine = Wine(context)
        with patch("photoshop_linux.wine.command_exists", return_value=True), \
                patch.object(wine, "windows_version", return_value="10.0"), \
                patch.object(wine, "winetricks_background") as background:
            assert wine.ensure_windows_10() is False
        background.assert_not_called()

    def test_ensure_windows_10_switches(self, context):
        wine = Wine(context)
        with patch("photoshop_linux.wine.command_exists", return_value=True), \
                patch.object(wine, "windows_version", return_value="6.1"), \
                patch.object(wine, "winetricks_background") as background:
            assert wine.ensure_windows_10() is True
        background.assert_called_once_with(["win10"])

    def test_to_windows_path_fallback(self, context, tmp_path):
        with patch("photoshop_linux.wine.command_exists", return_value=False):
            converted = Wine(context).to_windows_path(tmp_path / "image.psd")
        assert converted == z_drive_path((tmp_path / "image.psd").resolve())

    def test_to_windows_path_winepath(self, context, tmp_path):
        with patch("photoshop_linux.wine.command_exists", return_value=True), \
                patch("photoshop_linux.wine.subprocess.run",
                      return_value=completed(0, "Z:\\tmp\\image.psd\n")):
            assert Wine(context).to_windows_path(tmp_path / "image.psd") == "Z:\\tmp\\image.psd"

    def test_winetricks_retries(self, context):
        with patch("photoshop_linux.wine.retry_with_backoff", return_value=0) as retry:
            assert Wine(context).winetricks(["vcrun2015"], attempts=2) == 0
        assert retry.call_args.args[0] == ["winetricks", "-q", "vcrun2015"]
        assert retry.call_args.kwargs["max_attempts"] == 2
