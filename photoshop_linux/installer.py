"""
Photoshop Linux - the installation flow.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.

Every step that creates something journals how to undo it, and every
milestone writes a checkpoint, so a failed installation can be unwound to the
last good state.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Optional

import questionary
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from .checkpoint import CheckpointManager
from .config import Config, InstallContext
from .constants import (
    DEFAULT_PHOTOSHOP_VERSION,
    GPU_REGISTRY_KEY,
    GPU_REGISTRY_VALUES,
    REGISTRY_TWEAKS,
    REQUIRED_TOOLS,
    WINE_VARIANT_PROTON,
    WINE_VARIANT_STANDARD,
    WINETRICKS_GRAPHICS_STEP,
    WINETRICKS_MODERN_STEPS,
    WINETRICKS_STEPS,
)
from .desktop import (
    create_command_link,
    create_launcher,
    install_desktop_entry,
    install_mime_types,
    remove_command_link,
    remove_mime_types,
)
from .errors import (
    ExternalToolError,
    InstallationCancelled,
    PhotoshopLinuxError,
    PrerequisiteMissing,
    UserDeclined,
)
from .i18n import t
from .photoshop import (
    detect_photoshop_version,
    install_dir_candidates,
    prefs_path,
    remove_problematic_plugins,
    write_gpu_prefs,
)
from .record import InstallationRecord
from .security import PathGuard, recreate_directory, safe_remove
from .system import command_exists, get_info, is_64bit, notify
from .ui import ask_confirm, ask_select, console, info, section, step, success, warning
from .wait import wait_for_wine_prefix
from .wine import Wine, apply_dark_mode, available_variants, variant_tag

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str, bool], bool]


class PhotoshopInstaller:
    """Builds the Wine prefix, runs Adobe's installer and integrates Photoshop with the desktop."""

    def __init__(self, config: Config, context: InstallContext, wine_variant: Optional[str] = None,
                 confirm: Optional[ConfirmFn] = None, select: Optional[Callable] = None) -> None:
        self.config = config
        self.context = context
        self.requested_variant = wine_variant
        self.confirm = confirm or ask_confirm
        self.select = select or ask_select
        self.guard = PathGuard.for_installation(config.home, context.install_path, context.cache_path)
        checkpoint_dir = config.checkpoint_dir
        self.checkpoints = CheckpointManager(checkpoint_dir, PathGuard([checkpoint_dir.parent]))
        self.journal = self.checkpoints.journal
        self.wine: Optional[Wine] = None
        self.version = DEFAULT_PHOTOSHOP_VERSION
        self.failed_components: list[str] = []

    @property
    def setup_exe(self) -> Path:
        return self.config.installer_dir / "Set-up.exe"

    def _checkpoint(self, name: str) -> None:
        self.checkpoints.create(name, self.context)

    def _save_record(self) -> None:
        InstallationRecord.from_context(self.context).save(self.config.datafile)

    def run(self) -> None:
        """Run every installation step in order."""
        console.print(f"[dim]{get_info()}[/]")
        try:
            self.create_directories()
            self.check_system()
            self.select_wine_variant()
            self.setup_prefix()
            self.install_components()
            self.install_photoshop()
            self.apply_post_install_fixes()
            self.finish()
        except OSError as e:
            logger.exception("Installation step failed")
            raise PhotoshopLinuxError(f"Installation step failed: {e}") from e

    # =========================================================================
    # Preparation
    # =========================================================================

    def create_directories(self) -> None:
        section("Preparing directories")
        for path in (self.context.install_path, self.context.cache_path):
            self.guard.check(path)
            if not path.exists():
                path.mkdir(parents=True)
                self.journal.record(f"remove {path}", lambda p=path: safe_remove(p, self.guard))
            step(f"Using {path}")

        # Written now so the uninstaller can clean up a partial installation
        self._save_record()
        self.journal.record("delete installation record",
                            lambda: InstallationRecord.delete(self.config.datafile))
        self._checkpoint("directories_created")

    def check_system(self) -> None:
        section("Checking the system")
        if not is_64bit():
            if not self.confirm(t("not_64bit"), False):
                console.print(t("goodbye"))
                raise InstallationCancelled("Installation cancelled on a non 64-bit system")

        missing = [tool for tool in REQUIRED_TOOLS if not command_exists(tool)]
        if missing:
            warning(f"Missing packages: {', '.join(missing)}")
            if not self.confirm(t("missing_packages", packages=", ".join(missing)), False):
                raise UserDeclined(f"Missing packages: {', '.join(missing)}")
        else:
            success("wine and winetricks are installed")

        if not self.setup_exe.is_file():
            raise PrerequisiteMissing(
                f"Local Photoshop installation package not found: {self.setup_exe}. "
                f"Copy the Photoshop installation files to {self.config.installer_dir}"
            )

        self.version = detect_photoshop_version(self.config.installer_dir)
        success(f"Detected Photoshop version: {self.version}")
        logger.info("Detected Photoshop version %s", self.version)

    def select_wine_variant(self) -> None:
        section("Selecting Wine")
        variants = available_variants(self.config.home)
        if not variants:
            raise PrerequisiteMissing("No Wine installation found, install wine first")

        if self.requested_variant is not None:
            matching = [v for v in variants if v[0] == self.requested_variant]
            if not matching:
                raise PrerequisiteMissing(f"Requested Wine variant is not available: {self.requested_variant}")
            chosen = matching[0]
        elif len(variants) == 1:
            chosen = variants[0]
        else:
            choices = [questionary.Choice(variant[1], value=variant) for variant in variants]
            chosen = self.select(t("select_wine"), choices)
            if chosen is None:
                raise UserDeclined("No Wine variant selected")

        variant, description, proton_path = chosen
        self.context.wine_variant = variant_tag(variant, proton_path)
        self._save_record()
        self.wine = Wine(self.context, log_file=self.config.log_dir / "wine-output.log")
        success(f"Using {description}")
        logger.info("Wine variant: %s", self.context.wine_variant)

    # =========================================================================
    # Wine Prefix
    # =========================================================================

    def setup_prefix(self) -> None:
        section("Creating the Wine prefix")
        prefix = self.context.wine_prefix
        recreate_directory(prefix, self.guard)
        self.journal.record("remove Wine prefix", lambda: safe_remove(prefix, self.guard))
        os.environ["WINEPREFIX"] = str(prefix)

        step("Running winecfg (installs Mono and Gecko on a new prefix)")
        code = self.wine.winecfg()
        if code != 0:
            logger.warning("winecfg exited with code %d", code)

        step("Waiting for Wine to finish writing the prefix")
        if not wait_for_wine_prefix(prefix, self.config.prefix_timeout, self.config.poll_interval):
            raise ExternalToolError("winecfg", code or 1, f"Wine prefix was not created in {prefix}")

        if not apply_dark_mode(prefix):
            raise PhotoshopLinuxError(f"user.reg not found in {prefix}, cannot set dark mode")

        recreate_directory(self.context.resources_path, self.guard)
        self.journal.record("remove resources",
                            lambda: safe_remove(self.context.resources_path, self.guard))
        success("Wine prefix ready")
        self._checkpoint("wine_prefix_initialized")

    def winetricks_steps(self) -> list[tuple[tuple[str, ...], bool]]:
        steps = list(WINETRICKS_STEPS)
        if self.version in ("2021", "2022"):
            steps += WINETRICKS_MODERN_STEPS
        steps.append(WINETRICKS_GRAPHICS_STEP)
        return steps

    def install_components(self) -> None:
        section("Installing Windows components")
        steps = self.winetricks_steps()

        with Progress(
            SpinnerColumn(),
            TextColumn("[cyan]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("winetricks", total=len(steps))
            for verbs, optional in steps:
                progress.update(task, description=f"winetricks {' '.join(verbs)}")
                code = self.wine.winetricks(verbs, attempts=self.config.retry_attempts)
                if code != 0:
                    names = " ".join(verbs)
                    if optional:
                        logger.warning("Optional component %s failed (exit code %d)", names, code)
                    else:
                        logger.error("Component %s failed (exit code %d)", names, code)
                        self.failed_components.append(names)
                progress.advance(task)

        step("Applying registry tweaks")
        for key, name, data, value_type in REGISTRY_TWEAKS:
            self.wine.reg_add(key, name, data, value_type)
        self.wine.winetricks(["win10"], attempts=self.config.retry_attempts)

        if self.failed_components:
            warning(f"Some components failed: {', '.join(self.failed_components)}")
        else:
            success("Windows components installed")
        self._checkpoint("components_installed")

    # =========================================================================
    # Photoshop
    # =========================================================================

    def prepare_installer_engine(self) -> None:
        """IE8 and native IE libraries so the buttons of Adobe's installer work."""
        step("Installing IE8 via winetricks (takes 5-10 minutes)")
        if self.wine.winetricks(["ie8"], attempts=1) == 0:
            # IE8 resets the Windows version to win7
            self.wine.winetricks(["win10"], attempts=self.config.retry_attempts)
        else:
            logger.warning("IE8 installation failed, relying on DLL overrides")
        self.wine.set_ie_overrides()

    def install_photoshop(self) -> None:
        section(f"Installing Adobe Photoshop {self.version}")
        destination = self.context.resources_path / "photoshop"
        shutil.copytree(self.config.installer_dir, destination, dirs_exist_ok=True)

        self.prepare_installer_engine()

        console.print(
            "\n[yellow]Adobe's installer opens now. Keep the default install path, "
            "choose your language and wait until it reports success.[/]\n"
        )
        code = self.wine.run(str(destination / "Set-up.exe"))
        if code != 0:
            warning(f"Adobe installer exited with code {code}")
            logger.warning("Set-up.exe exited with code %d", code)
        else:
            success("Adobe installer finished")
        self._checkpoint("photoshop_installed")

    def apply_post_install_fixes(self) -> None:
        section("Applying Photoshop fixes")
        for directory in install_dir_candidates(self.context, self.version):
            if directory.is_dir():
                for name in remove_problematic_plugins(directory):
                    info(f"Removed {name}")

        version = self.version
        if not prefs_path(self.context, version).is_dir():
            version = DEFAULT_PHOTOSHOP_VERSION
        write_gpu_prefs(self.context, version)

        for name in GPU_REGISTRY_VALUES:
            self.wine.reg_add(GPU_REGISTRY_KEY, name, "0", "REG_DWORD")
        if self.wine.winetricks(["gdiplus_winxp"], attempts=self.config.retry_attempts) != 0:
            logger.warning("gdiplus_winxp could not be installed")
        success("GPU acceleration disabled and problematic plugins removed")

    # =========================================================================
    # Desktop Integration
    # =========================================================================

    def finish(self) -> None:
        section("Creating the launcher")
        notify("Photoshop CC", t("install_complete"))
        safe_remove(self.context.resources_path, self.guard, context="remove resources")

        create_launcher(self.context, self.config.icon_source)
        entry = install_desktop_entry(self.config, self.context)
        self.journal.record("remove desktop entry", lambda: entry.unlink(missing_ok=True))
        install_mime_types(self.config, self.context)
        self.journal.record("remove MIME types", lambda: remove_mime_types(self.config))

        try:
            link = create_command_link(self.context, self.config.command_link)
            self.journal.record("remove photoshop command", lambda: remove_command_link(link))
        except ExternalToolError as e:
            warning(f"Could not create the photoshop command: {e}")

        self._checkpoint("launcher_created")
        self._save_record()
        self.checkpoints.cleanup()

        console.print(f"\n[bold green]{t('install_complete')}[/]")
        info(f"Start it with 'photoshop', from the application menu or {self.context.launcher_path}")

    # =========================================================================
    # Rollback
    # =========================================================================

    def rollback_to_last_checkpoint(self) -> Optional[str]:
        """Undo everything after the newest checkpoint of this run."""
        name = self.checkpoints.latest()
        if name is None:
            return None
        self.checkpoints.rollback(name)
        return name


def default_context(config: Config, install_path: Optional[Path] = None,
                    cache_path: Optional[Path] = None) -> InstallContext:
    return InstallContext(
        install_path=(install_path or config.default_install_path).expanduser().resolve(),
        cache_path=(cache_path or config.default_cache_path).expanduser().resolve(),
    )


def requested_variant(wine_standard: bool, proton_ge: bool) -> Optional[str]:
    if proton_ge:
        return WINE_VARIANT_PROTON
    if wine_standard:
        return WINE_VARIANT_STANDARD
    return None
