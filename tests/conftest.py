"""Shared fixtures: a throwaway home directory and a configuration pointing into it."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest
from rich.logging import RichHandler

from photoshop_linux.config import Config, InstallContext
from photoshop_linux.system import command_exists


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    """Provide an empty home directory and point HOME and USER at it."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USER", "tester")
    for var in ("CHECKPOINT_DIR", "PS_LOG_DIR", "PS_INSTALLER_DIR", "UPDATE_CACHE_FILE", "UPDATE_CACHE_TTL"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def config(fake_home, tmp_path):
    """Provide a Config whose every path lives under the temporary directory."""
    installer_dir = tmp_path / "installer"
    installer_dir.mkdir()
    icon = tmp_path / "icon.png"
    icon.write_bytes(b"\x89PNG\r\n")
    return Config(
        home=fake_home,
        installer_dir=installer_dir,
        icon_source=icon,
        command_link=tmp_path / "bin" / "photoshop",
        prefix_timeout=1,
        poll_interval=0,
        retry_attempts=1,
    )


@pytest.fixture
def context(config):
    """Provide an InstallContext for the default locations inside the fake home."""
    return InstallContext(config.default_install_path, config.default_cache_path)


@pytest.fixture
def installed(config, context):
    """Create the directories and record of a finished installation."""
    context.wine_prefix.mkdir(parents=True)
    context.cache_path.mkdir(parents=True)
    config.datafile.write_text(f"{context.install_path}\n{context.cache_path}\nwine-standard\n")
    return context


@pytest.fixture(autouse=True)
def reset_state(monkeypatch):
    """Use English texts and clear cached lookups and logging handlers between tests."""
    monkeypatch.setattr("photoshop_linux.i18n._language", "en")
    monkeypatch.setenv("LANG_CODE", "en")
    command_exists.cache_clear()
    yield
    command_exists.cache_clear()
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if isinstance(handler, (RichHandler, RotatingFileHandler)):
            root.removeHandler(handler)
            handler.close()


def make_pe(path: Path, machine: int) -> Path:
    """Write a minimal PE stub whose COFF header names ``machine``."""
    data = bytearray(512)
    data[0:2] = b"MZ"
    data[0x3C:0x40] = (0x80).to_bytes(4, "little")
    data[0x80:0x84] = b"PE\0\0"
    data[0x84:0x86] = machine.to_bytes(2, "little")
    path.write_bytes(bytes(data))
    return path
