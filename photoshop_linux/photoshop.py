"""
Photoshop Linux - Photoshop version detection and post-install fixes.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import getpass
import logging
import os
import re
import struct
from pathlib import Path
from typing import Optional

import pefile

from .config import InstallContext
from .constants import (
    DEFAULT_PHOTOSHOP_VERSION,
    GPU_PREFS_CONTENT,
    PE_MACHINE_NAMES,
    PHOTOSHOP_EXE_CANDIDATES,
    PROBLEMATIC_PLUGINS,
)

logger = logging.getLogger(__name__)

VERSION_STRING_RE = re.compile(rb"photoshop[^\x00]{0,40}?(2022|2021|CC 2019|2019|20\.)", re.IGNORECASE)
STRINGS_SCAN_LIMIT = 64 * 1024 * 1024


def current_user() -> str:
    return os.environ.get("USER") or getpass.getuser()


# =============================================================================
# Executable Analysis
# =============================================================================

def pe_machine(path: Path) -> str:
    """
    Machine type of a PE file: "ARM64", "AMD64", "i386" or "unknown".
    """
    machine: Optional[int] = None
    try:
        pe = pefile.PE(str(path), fast_load=True)
        machine = pe.FILE_HEADER.Machine
        pe.close()
    except (pefile.PEFormatError, OSError):
        # Fallback: read the COFF header directly
        try:
            with open(path, "rb") as f:
                f.seek(0x3C)
                pe_offset = struct.unpack("<I", f.read(4))[0]
                f.seek(pe_offset + 4)
                machine = struct.unpack("<H", f.read(2))[0]
        except (OSError, struct.error):
            machine = None

    return PE_MACHINE_NAMES.get(machine, "unknown") if machine is not None else "unknown"


def product_major_version(exe_path: Path) -> Optional[int]:
    """Major product version from the PE version resource, if present."""
    try:
        pe = pefile.PE(str(exe_path), fast_load=True)
        pe.parse_data_directories(
            directories=[pefile.DIRECTORY_ENTRY["IMAGE_DIRECTORY_ENTRY_RESOURCE"]]
        )
    except (pefile.PEFormatError, OSError) as e:
        logger.debug("Cannot parse %s: %s", exe_path, e)
        return None

    try:
        fixed = getattr(pe, "VS_FIXEDFILEINFO", None)
        if fixed:
            info = fixed[0] if isinstance(fixed, list) else fixed
            major = info.ProductVersionMS >> 16
            if major:
                return major

        for file_info in getattr(pe, "FileInfo", None) or []:
            entries = file_info if isinstance(file_info, list) else [file_info]
            for entry in entries:
                for table in getattr(entry, "StringTable", []):
                    value = table.entries.get(b"ProductVersion", b"").decode("utf-8", errors="ignore")
                    head = value.strip().split(".", 1)[0]
                    if head.isdigit():
                        return int(head)
    finally:
        pe.close()

    return None


def version_from_major(major: int) -> str:
    if major >= 23:
        return "2022"
    if major >= 22:
        return "2021"
    return DEFAULT_PHOTOSHOP_VERSION


def version_from_text(text: str) -> Optional[str]:
    if "2022" in text:
        return "2022"
    if "2021" in text:
        return "2021"
    if "2019" in text:
        return DEFAULT_PHOTOSHOP_VERSION
    return None


def detect_photoshop_version(installer_dir: Path) -> str:
    """
    Photoshop release of the installer in ``installer_dir``.

    Tries the PE version resource of Set-up.exe, then versioned directory
    names, then version strings inside the executable. Defaults to "CC 2019".
    """
    setup_exe = installer_dir / "Set-up.exe"
    if not setup_exe.is_file():
        return DEFAULT_PHOTOSHOP_VERSION

    major = product_major_version(setup_exe)
    if major is not None and major >= 20:
        return version_from_major(major)

    for directory in sorted(installer_dir.glob("Adobe Photoshop*")):
        if directory.is_dir():
            version = version_from_text(directory.name)
            if version:
                return version

    try:
        with open(setup_exe, "rb") as f:
            data = f.read(STRINGS_SCAN_LIMIT)
    except OSError:
        return DEFAULT_PHOTOSHOP_VERSION

    for candidate in (data, data.replace(b"\x00", b"")):
        match = VERSION_STRING_RE.search(candidate)
        if match:
            return version_from_text(match.group(0).decode("ascii", errors="ignore")) or DEFAULT_PHOTOSHOP_VERSION

    return DEFAULT_PHOTOSHOP_VERSION


# =============================================================================
# Installation Layout
# =============================================================================

def _version_dirname(version: str) -> str:
    if "2022" in version:
        return "Adobe Photoshop 2022"
    if "2021" in version:
        return "Adobe Photoshop 2021"
    return "Adobe Photoshop CC 2019"


def install_path(context: InstallContext, version: str) -> Path:
    return context.drive_c / "Program Files/Adobe" / _version_dirname(version)


def prefs_path(context: InstallContext, version: str, user: Optional[str] = None) -> Path:
    user = user or current_user()
    return context.drive_c / "users" / user / "AppData/Roaming/Adobe" / _version_dirname(version)


def install_dir_candidates(context: InstallContext, version: str) -> list[Path]:
    candidates = [install_path(context, version)]
    for rel in PHOTOSHOP_EXE_CANDIDATES:
        directory = context.drive_c / rel.format(user=current_user())
        if directory.parent not in candidates:
            candidates.append(directory.parent)
    return candidates


def find_photoshop_exe(context: InstallContext) -> Optional[Path]:
    """First existing Photoshop.exe among the known install locations."""
    for rel in PHOTOSHOP_EXE_CANDIDATES:
        candidate = context.drive_c / rel.format(user=current_user())
        if candidate.is_file():
            return candidate
    return None


def searched_exe_paths(context: InstallContext) -> list[Path]:
    return [context.drive_c / rel.format(user=current_user()) for rel in PHOTOSHOP_EXE_CANDIDATES]


# =============================================================================
# Post-install Fixes
# =============================================================================

def remove_problematic_plugins(photoshop_dir: Path) -> list[str]:
    """Delete plugins and CEP panels that crash under Wine. Returns removed names."""
    removed = []
    for rel in PROBLEMATIC_PLUGINS:
        plugin = photoshop_dir / rel
        if plugin.is_file() and not plugin.is_symlink():
            plugin.unlink()
            removed.append(plugin.name)
            logger.info("Removed problematic plugin: %s", plugin)
    return removed


def write_gpu_prefs(context: InstallContext, version: str, user: Optional[str] = None) -> Path:
    """Write a Photoshop preferences file with GPU acceleration disabled."""
    prefs_dir = prefs_path(context, version, user)
    prefs_file = prefs_dir / f"Adobe Photoshop {version} Prefs.psp"
    prefs_dir.mkdir(parents=True, exist_ok=True)
    prefs_file.write_text(GPU_PREFS_CONTENT)
    logger.info("GPU acceleration disabled in %s", prefs_file)
    return prefs_file
