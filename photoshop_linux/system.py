"""
Photoshop Linux - host detection and desktop database refresh.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess
from functools import lru_cache
from pathlib import Path
from typing import Optional

from .constants import DESKTOP_ENVIRONMENTS, DESKTOP_SHELL_PROCESSES

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")

DISTRO_NAMES = {
    "arch": "Arch",
    "archlinux": "Arch",
    "ubuntu": "Ubuntu",
    "debian": "Debian",
    "fedora": "Fedora",
    "opensuse": "openSUSE",
    "opensuse-tumbleweed": "openSUSE",
    "opensuse-leap": "openSUSE",
}


# =============================================================================
# Detection
# =============================================================================

@lru_cache(maxsize=32)
def command_exists(cmd: str) -> bool:
    return shutil.which(cmd) is not None


def parse_os_release(text: str) -> dict[str, str]:
    values = {}
    for line in text.splitlines():
        if "=" in line and not line.startswith("#"):
            key, value = line.split("=", 1)
            values[key.strip()] = value.strip().strip('"').strip("'")
    return values


@lru_cache(maxsize=1)
def detect_distro() -> str:
    """Distribution name from /etc/os-release, e.g. "Arch" or "Fedora"."""
    if OS_RELEASE.is_file():
        try:
            distro_id = parse_os_release(OS_RELEASE.read_text()).get("ID", "").lower()
        except OSError:
            distro_id = ""
        if distro_id:
            return DISTRO_NAMES.get(distro_id, distro_id[:1].upper() + distro_id[1:])

    for marker, name in (("/etc/arch-release", "Arch"), ("/etc/debian_version", "Debian"),
                         ("/etc/fedora-release", "Fedora")):
        if Path(marker).exists():
            return name
    return "Unknown"


def normalize_desktop(name: str) -> str:
    if not name:
        return "Unknown"
    lowered = name.lower()
    for key, normalized in DESKTOP_ENVIRONMENTS.items():
        if key in lowered:
            return normalized
    return name[:1].upper() + name[1:]


def _process_running(name: str) -> bool:
    try:
        return subprocess.run(["pgrep", "-x", name], capture_output=True, timeout=5).returncode == 0
    except (OSError, subprocess.TimeoutExpired):
        return False


@lru_cache(maxsize=1)
def detect_desktop() -> str:
    """Desktop environment from the XDG session variables or running shells."""
    for var in ("XDG_CURRENT_DESKTOP", "DESKTOP_SESSION", "XDG_SESSION_DESKTOP"):
        value = os.environ.get(var, "").strip()
        if value:
            return normalize_desktop(value)

    for process, desktop in DESKTOP_SHELL_PROCESSES:
        if _process_running(process):
            return desktop
    return "Unknown"


@lru_cache(maxsize=1)
def detect_kernel() -> str:
    return platform.release() or "Unknown"


@lru_cache(maxsize=1)
def detect_arch() -> str:
    return platform.machine() or "Unknown"


def kernel_major(release: Optional[str] = None) -> int:
    release = release if release is not None else detect_kernel()
    head = release.split(".", 1)[0]
    return int(head) if head.isdigit() else 0


def is_64bit() -> bool:
    return detect_arch() in ("x86_64", "amd64", "aarch64", "arm64")


def get_info() -> str:
    return (f"Distribution: {detect_distro()} | Desktop: {detect_desktop()} | "
            f"Kernel: {detect_kernel()} | Arch: {detect_arch()}")


# =============================================================================
# Desktop Databases
# =============================================================================

def _run_quiet(argv: list[str]) -> bool:
    try:
        result = subprocess.run(argv, capture_output=True, timeout=60)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("%s failed: %s", argv[0], e)
        return False
    if result.returncode != 0:
        logger.debug("%s exited with %d", argv[0], result.returncode)
    return result.returncode == 0


def update_icon_cache(hicolor_dir: Path) -> bool:
    """Refresh the user's hicolor icon cache for the running desktop."""
    if not hicolor_dir.is_dir():
        return False

    desktop = detect_desktop()
    if desktop in ("GNOME", "XFCE", "MATE", "Cinnamon") and command_exists("gtk-update-icon-cache"):
        return _run_quiet(["gtk-update-icon-cache", "-f", "-t", str(hicolor_dir)])
    if desktop == "KDE" and command_exists("kbuildsycoca4"):
        return _run_quiet(["kbuildsycoca4", "--noincremental"])

    if command_exists("gtk-update-icon-cache"):
        _run_quiet(["gtk-update-icon-cache", "-f", "-t", str(hicolor_dir)])
    if command_exists("kbuildsycoca4"):
        _run_quiet(["kbuildsycoca4", "--noincremental"])
    return True


def update_desktop_database(applications_dir: Path) -> bool:
    if not applications_dir.is_dir():
        return False
    if command_exists("update-desktop-database"):
        return _run_quiet(["update-desktop-database", str(applications_dir)])
    if detect_desktop() == "KDE" and command_exists("kbuildsycoca4"):
        _run_quiet(["kbuildsycoca4", "--noincremental"])
    return True


def update_mime_database(mime_dir: Path) -> bool:
    if not mime_dir.is_dir() or not command_exists("update-mime-database"):
        return False
    return _run_quiet(["update-mime-database", str(mime_dir)])


def notify(title: str, message: str, icon: Optional[Path] = None) -> None:
    """Show a desktop notification; failures are ignored."""
    if not command_exists("notify-send"):
        return
    argv = ["notify-send", "-a", "Photoshop"]
    if icon is not None and icon.is_file():
        argv += ["-i", str(icon)]
    argv += [title, message]
    _run_quiet(argv)
