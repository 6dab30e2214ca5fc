"""
Photoshop Linux - removing an installation.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Callable, Optional

from .checkpoint import CheckpointManager
from .config import Config
from .constants import OTHER_WINE_PREFIXES, PACKAGE_MANAGERS
from .desktop import remove_command_link, remove_desktop_entries, remove_icons, remove_mime_types
from .errors import ExternalToolError, InstallationCancelled, PhotoshopLinuxError, UnsafePathError
from .i18n import t
from .processes import stop_prefix_processes
from .record import InstallationRecord
from .security import PathGuard, safe_remove
from .system import command_exists, notify
from .ui import ask_confirm, console, info, step, success, warning
from .wine import find_proton_ge

logger = logging.getLogger(__name__)

WINE_PACKAGES: dict[str, tuple[str, ...]] = {
    "pacman": ("wine", "wine-staging", "wine-mono", "wine-gecko"),
    "apt": ("--purge", "wine", "wine-stable", "wine-staging"),
    "dnf": ("wine",),
}
PROTON_AUR_PACKAGE = "proton-ge-custom-bin"


def has_other_wine_prefixes(home: Path, own_prefix: Optional[Path]) -> bool:
    """True when Wine prefixes other than Photoshop's exist, so Wine must stay."""
    for rel in OTHER_WINE_PREFIXES:
        candidate = home / rel
        if not candidate.is_dir() or candidate == own_prefix:
            continue
        if (candidate / "system.reg").is_file() or (candidate / "user.reg").is_file():
            return True
        if any(candidate.glob("*.reg")) or any(candidate.glob("*/*.reg")):
            return True

    prefixes = home / ".local/share/wineprefixes"
    return prefixes.is_dir() and any(p.is_dir() for p in prefixes.iterdir())


def _package_remove(argv: list[str]) -> bool:
    logger.info("Running: %s", " ".join(argv))
    try:
        return subprocess.run(argv).returncode == 0
    except FileNotFoundError:
        return False


def _package_installed(package: str) -> bool:
    try:
        return subprocess.run(["pacman", "-Q", package], capture_output=True).returncode == 0
    except FileNotFoundError:
        return False


class PhotoshopUninstaller:
    """Removes everything the installer created."""

    def __init__(self, config: Config, confirm: Optional[Callable[[str, bool], bool]] = None) -> None:
        self.config = config
        self.confirm = confirm or ask_confirm
        self.record = InstallationRecord.load(config.datafile, strict=False)
        self.guard = PathGuard.for_installation(config.home, self.record.install_path, self.record.cache_path)

    @property
    def uses_proton(self) -> bool:
        return "proton" in self.record.wine_variant.lower()

    def run(self) -> None:
        notify("Photoshop", "Uninstaller started")
        if self.record.is_empty:
            warning(t("not_installed"))

        if self.uses_proton:
            info(f"Installation used Proton GE ({self.record.wine_variant})")
        else:
            info("Installation used standard Wine")

        if not self.confirm(t("uninstall_confirm"), False):
            console.print(t("goodbye"))
            raise InstallationCancelled("Uninstallation cancelled by the user")

        step("Stopping Wine processes")
        stop_prefix_processes(self.record.install_path)

        self.remove_install_directory()
        self.remove_command()
        self.remove_desktop_integration()
        self.remove_cache()
        self.remove_runtime()

        InstallationRecord.delete(self.config.datafile)
        checkpoint_dir = self.config.checkpoint_dir
        CheckpointManager(checkpoint_dir, PathGuard([checkpoint_dir.parent])).cleanup()

        console.print(f"\n[bold green]{t('uninstall_complete')}[/]")

    def _remove_tree(self, path: Optional[Path], label: str) -> None:
        if path is None:
            return
        step(f"Removing {label}: {path}")
        try:
            if not safe_remove(path, self.guard, context="uninstaller"):
                info(f"{label} not found")
        except UnsafePathError:
            raise
        except PhotoshopLinuxError as e:
            logger.error("Failed to remove %s: %s", path, e)
            warning(str(e))

    def remove_install_directory(self) -> None:
        self._remove_tree(self.record.install_path, "Photoshop directory")

    def remove_cache(self) -> None:
        self._remove_tree(self.record.cache_path, "cache directory")

    def remove_command(self) -> None:
        link = self.config.command_link
        try:
            if remove_command_link(link):
                success(f"Removed {link}")
            else:
                info("photoshop command not found")
        except ExternalToolError as e:
            logger.error("Failed to remove %s: %s", link, e)
            warning(f"Could not remove {link}: {e}")

    def remove_desktop_integration(self) -> None:
        step("Removing desktop entries")
        removed = remove_desktop_entries(self.config)
        for entry in removed:
            info(f"Removed {entry}")
        if not removed:
            info("No desktop entries found")
        remove_mime_types(self.config)

        step("Removing icons")
        remove_icons(self.config)

    # =========================================================================
    # Wine / Proton GE
    # =========================================================================

    def remove_runtime(self) -> None:
        if self.uses_proton:
            self.remove_proton_ge()
            return

        own_prefix = self.record.install_path / "prefix" if self.record.install_path else None
        if has_other_wine_prefixes(self.config.home, own_prefix):
            logger.info("Other Wine prefixes exist, keeping Wine")
            return
        if self.confirm(t("remove_wine"), False):
            self.remove_wine()

    def remove_wine(self) -> bool:
        for manager, prefix_argv in PACKAGE_MANAGERS.items():
            if command_exists(manager):
                return _package_remove([*prefix_argv, *WINE_PACKAGES[manager]])
        warning("No supported package manager found, remove Wine manually")
        return False

    def remove_proton_ge(self) -> bool:
        proton = find_proton_ge(self.config.home)
        if proton is not None:
            if not self.confirm(t("remove_proton", path=proton), False):
                return False
            try:
                return safe_remove(proton, PathGuard([proton.parent]), context="uninstaller")
            except PhotoshopLinuxError as e:
                logger.warning("Could not remove Proton GE at %s: %s", proton, e)
                return False

        if command_exists("pacman") and _package_installed(PROTON_AUR_PACKAGE):
            if not self.confirm(t("remove_proton", path=PROTON_AUR_PACKAGE), False):
                return False
            for helper in ("yay", "paru"):
                if command_exists(helper):
                    return _package_remove([helper, "-Rns", PROTON_AUR_PACKAGE])
            return _package_remove(["sudo", "pacman", "-Rns", PROTON_AUR_PACKAGE])
        return False
