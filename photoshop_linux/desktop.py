"""
Photoshop Linux - launcher script, menu entry, MIME types and the photoshop command.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from .config import Config, InstallContext
from .constants import (
    DESKTOP_FILE_NAME,
    DESKTOP_SHORTCUT_DIRS,
    ICON_NAME,
    ICON_SIZES,
    LAUNCHER_SCRIPT_NAME,
    LEGACY_DESKTOP_ENTRIES,
    MIME_FILE_NAME,
    PHOTOSHOP_MIME_TYPES,
)
from .errors import ExternalToolError, UnsafePathError
from .security import is_safe_home, validate_path
from .system import update_desktop_database, update_icon_cache, update_mime_database

logger = logging.getLogger(__name__)

ICON_THEME_NAME = "photoshop"


# =============================================================================
# Launcher
# =============================================================================

def launcher_script_text(python: Optional[str] = None) -> str:
    python = python or sys.executable
    return (
        "#!/bin/sh\n"
        "# Starts Adobe Photoshop CC through Wine\n"
        f"exec {shlex.quote(python)} -m photoshop_linux.launcher \"$@\"\n"
    )


def create_launcher(context: InstallContext, icon_source: Optional[Path] = None) -> Path:
    """Write ``<install>/launcher/launcher.sh`` and copy the icon next to it."""
    launcher_dir = context.launcher_path
    launcher_dir.mkdir(parents=True, exist_ok=True)

    script = launcher_dir / LAUNCHER_SCRIPT_NAME
    script.write_text(launcher_script_text())
    script.chmod(0o755)

    if icon_source is not None and icon_source.is_file():
        shutil.copyfile(icon_source, launcher_dir / ICON_NAME)
    else:
        logger.warning("Icon not found, using default icon")

    logger.info("Launcher created: %s", script)
    return script


def launcher_icon(context: InstallContext) -> Path:
    return context.launcher_path / ICON_NAME


# =============================================================================
# Desktop Entry and MIME Types
# =============================================================================

def quote_exec_argument(argument: str) -> str:
    """Quote one ``Exec`` argument the way the Desktop Entry format expects."""
    for char in ("\\", '"', "`", "$"):
        argument = argument.replace(char, "\\" + char)
    # The key value is unescaped once more before the arguments are split
    return '"{}"'.format(argument.replace("\\", "\\\\"))


def desktop_entry_text(launcher_script: Path, icon: Path) -> str:
    mime_types = ";".join(mime for mime, _ in PHOTOSHOP_MIME_TYPES)
    return f"""[Desktop Entry]
Name=Photoshop CC
Comment=Adobe Photoshop CC on Wine
Exec={quote_exec_argument(str(launcher_script))} %F
Icon={icon}
Type=Application
Categories=Graphics;2DGraphics;RasterGraphics;
StartupNotify=true
StartupWMClass=photoshop.exe
MimeType={mime_types};
Terminal=false
"""


def install_desktop_entry(config: Config, context: InstallContext) -> Path:
    applications = config.applications_path
    applications.mkdir(parents=True, exist_ok=True)

    entry = applications / DESKTOP_FILE_NAME
    if entry.is_symlink():
        entry.unlink()
    entry.write_text(desktop_entry_text(context.launcher_path / LAUNCHER_SCRIPT_NAME,
                                        launcher_icon(context)))
    entry.chmod(0o755)
    update_desktop_database(applications)
    logger.info("Desktop entry created: %s", entry)
    return entry


def mime_xml(icon: Path) -> str:
    blocks = []
    for mime_type, globs in PHOTOSHOP_MIME_TYPES:
        lines = [
            f'  <mime-type type="{mime_type}">',
            "    <comment>Adobe Photoshop Document</comment>",
            '    <comment xml:lang="de">Adobe Photoshop Dokument</comment>',
        ]
        lines += [f'    <glob pattern="{pattern}"/>' for pattern in globs]
        lines += [f"    <icon>{escape(str(icon))}</icon>", "  </mime-type>"]
        blocks.append("\n".join(lines))

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<mime-info xmlns="http://www.freedesktop.org/standards/shared-mime-info">\n'
        + "\n".join(blocks)
        + "\n</mime-info>\n"
    )


def install_mime_types(config: Config, context: InstallContext) -> Optional[Path]:
    """Register PSD/PSB files so they open with Photoshop."""
    if not is_safe_home(config.home):
        logger.warning("Unsafe HOME, skipping MIME type registration")
        return None

    packages = config.mime_path / "packages"
    packages.mkdir(parents=True, exist_ok=True)
    mime_file = packages / MIME_FILE_NAME
    mime_file.write_text(mime_xml(launcher_icon(context)))

    update_desktop_database(config.applications_path)
    update_mime_database(config.mime_path)
    logger.info("MIME types registered: %s", mime_file)
    return mime_file


# =============================================================================
# photoshop Command
# =============================================================================

def _sudo(*argv: str) -> None:
    try:
        result = subprocess.run(["sudo", *argv], capture_output=True, text=True)
    except FileNotFoundError as e:
        raise ExternalToolError("sudo", 127, "sudo is not installed") from e
    if result.returncode != 0:
        raise ExternalToolError(f"sudo {argv[0]}", result.returncode, result.stderr.strip())


def create_command_link(context: InstallContext, link: Path) -> Path:
    """Symlink ``link`` (normally /usr/local/bin/photoshop) to the launcher script."""
    if not validate_path(context.install_path):
        raise UnsafePathError(f"Install path points to a system directory: {context.install_path}")

    script = context.launcher_path / LAUNCHER_SCRIPT_NAME
    if not script.is_file():
        raise ExternalToolError("ln", 1, f"launcher script not found: {script}")

    if link.exists() or link.is_symlink():
        logger.info("photoshop command exists, replacing it")
        _sudo("rm", "-f", str(link))
    _sudo("ln", "-s", str(script), str(link))
    logger.info("Created command %s -> %s", link, script)
    return link


def remove_command_link(link: Path) -> bool:
    """Remove the command symlink with sudo. Regular files are left alone."""
    if not link.is_symlink():
        return False
    if not validate_path(link):
        raise UnsafePathError(f"Refusing to remove {link} with sudo")
    # The link may have been swapped since the check above
    if not link.is_symlink():
        raise UnsafePathError(f"{link} changed while it was being removed")
    _sudo("unlink", str(link))
    return True


# =============================================================================
# Removal
# =============================================================================

def _is_photoshop_name(path: Path) -> bool:
    return "photoshop" in path.name.lower()


def find_desktop_entries(config: Config) -> list[Path]:
    """Photoshop menu entries and desktop shortcuts that currently exist."""
    applications = config.applications_path
    found = [applications / name for name in LEGACY_DESKTOP_ENTRIES]

    wine_menu = applications / "wine"
    if wine_menu.is_dir():
        found += [p for p in wine_menu.rglob("*") if p.is_file() and _is_photoshop_name(p)]

    for dirname in DESKTOP_SHORTCUT_DIRS:
        desktop_dir = config.home / dirname
        if desktop_dir.is_dir():
            found += [p for p in desktop_dir.iterdir() if p.is_file() and _is_photoshop_name(p)]

    unique = []
    for path in found:
        if path.is_file() and path not in unique:
            unique.append(path)
    return unique


def remove_desktop_entries(config: Config) -> list[Path]:
    removed = []
    for entry in find_desktop_entries(config):
        try:
            entry.unlink()
        except OSError as e:
            logger.warning("Could not remove %s: %s", entry, e)
            continue
        removed.append(entry)
        logger.info("Removed desktop entry %s", entry)

    programs = config.applications_path / "wine/Programs"
    for directory in (programs, programs.parent):
        if directory.is_dir() and not any(directory.iterdir()):
            directory.rmdir()
            logger.debug("Removed empty menu directory %s", directory)

    update_desktop_database(config.applications_path)
    return removed


def remove_mime_types(config: Config) -> bool:
    mime_file = config.mime_path / "packages" / MIME_FILE_NAME
    if not mime_file.is_file():
        return False
    mime_file.unlink()
    update_mime_database(config.mime_path)
    return True


def remove_icons(config: Config) -> bool:
    """Delete hicolor theme icons of every size and refresh the icon cache."""
    hicolor = config.icons_path
    icons = [hicolor / f"{size}x{size}/apps/{ICON_THEME_NAME}.png" for size in ICON_SIZES]
    icons.append(hicolor / f"scalable/apps/{ICON_THEME_NAME}.svg")

    removed = False
    for icon in icons:
        if icon.is_file():
            icon.unlink()
            removed = True

    if removed:
        update_icon_cache(hicolor)
        logger.info("Icons removed and icon cache updated")
    return removed
