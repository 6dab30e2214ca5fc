"""
Photoshop Linux - command line entry points.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

import questionary

from . import __version__
from .checkpoint import CheckpointManager
from .config import Config
from .constants import EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_OK
from .errors import InstallationCancelled, PhotoshopLinuxError, UserDeclined
from .i18n import t, toggle_language
from .installer import PhotoshopInstaller, default_context, requested_variant
from .launcher import launch
from .log import setup_logging
from .precheck import ERROR, OK, run_precheck
from .processes import kill_photoshop
from .record import InstallationRecord
from .security import sanitize_input
from .system import notify
from .ui import (
    ask_confirm,
    ask_path,
    ask_select,
    console,
    display_banner,
    display_panel,
    error,
    info,
    section,
    success,
    warning,
)
from .uninstaller import PhotoshopUninstaller
from .update import UpdateChecker
from .wine import Wine

logger = logging.getLogger(__name__)


# =============================================================================
# Shared Helpers
# =============================================================================

def run_guarded(body: Callable[[], Optional[int]]) -> int:
    """Run a command body and turn its outcome into an exit code."""
    try:
        result = body()
        return EXIT_OK if result is None else result
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/]")
        return EXIT_INTERRUPTED
    except PhotoshopLinuxError as e:
        if e.exit_code != EXIT_OK:
            logger.error("%s", e)
            error(str(e))
        return e.exit_code
    except OSError as e:
        logger.exception("Unexpected system error")
        error(str(e))
        return EXIT_FAILURE


def start(name: str, verbose: bool = False) -> Config:
    config = Config.from_env()
    log_path = setup_logging(name, config.log_dir, verbose)
    if log_path is not None:
        logger.debug("Logging to %s", log_path)
    return config


def add_verbose(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-v", "--verbose", action="store_true", help="show debug output")


# =============================================================================
# Flows
# =============================================================================

def run_install_flow(config: Config, install_path: Optional[Path] = None,
                     cache_path: Optional[Path] = None, variant: Optional[str] = None) -> int:
    """Run the installer and offer a rollback when it fails."""
    context = default_context(config, install_path, cache_path)
    console.print(f"\n[bold cyan]{t('installing', path=context.install_path)}[/]\n")
    installer = PhotoshopInstaller(config, context, wine_variant=variant)

    try:
        installer.run()
    except (UserDeclined, InstallationCancelled):
        raise
    except PhotoshopLinuxError as e:
        error(t("install_failed", error=e))
        name = installer.checkpoints.latest()
        if name and ask_confirm(t("offer_rollback", name=name), default=True):
            installer.rollback_to_last_checkpoint()
            success(t("rollback_done", name=name))
        raise

    display_panel(
        f"""[bold green]{t('install_complete')}[/]

[cyan]Photoshop:[/] {installer.version}
[cyan]Install path:[/] {context.install_path}
[cyan]Wine:[/] {context.wine_variant}

[yellow]Start Photoshop with:[/]
[bold]photoshop[/] or from the application menu""",
        title="Success",
    )
    if installer.failed_components:
        warning(f"Components that failed to install: {', '.join(installer.failed_components)}")
    return EXIT_OK


def run_precheck_flow(config: Config) -> int:
    section(t("precheck_title"))
    results = run_precheck(config)
    for result in results:
        if result.status == OK:
            console.print(f"[green]✓[/] {result.label}: {result.detail}")
        elif result.status == ERROR:
            console.print(f"[bold red]✗[/] {result.label}: {result.detail}")
        else:
            console.print(f"[yellow]⚠[/] {result.label}: {result.detail}")
    return EXIT_OK if all(r.passed for r in results) else EXIT_FAILURE


def run_winecfg_flow(config: Config) -> int:
    context = InstallationRecord.load(config.datafile, strict=True).to_context()
    display_panel(
        f"""[cyan]Wine prefix:[/] {context.wine_prefix}

[bold]Recommended settings:[/]
  1. Applications tab: Windows version Windows 10
  2. Graphics tab: 96 DPI, virtual desktop only if windows misbehave
  3. Staging tab (if present): enable CSMT

[bold]Known problems:[/]
  - Photoshop crashes: disable GPU acceleration in Photoshop
  - Unreadable fonts: set font smoothing to RGB
  - Slow first start: normal, takes 1-2 minutes
  - VCRUNTIME140.dll missing: install vcrun2015 with winetricks""",
        title="Wine configuration for Photoshop CC",
    )
    notify("Photoshop CC", "Opening Wine configuration...")
    Wine(context).winecfg()
    success("Configuration finished")
    return EXIT_OK


def run_uninstall_flow(config: Config) -> int:
    PhotoshopUninstaller(config).run()
    return EXIT_OK


def run_checkpoints_flow(config: Config) -> None:
    checkpoints = CheckpointManager(config.checkpoint_dir).list()
    if not checkpoints:
        info(t("no_checkpoints"))
        return
    for checkpoint in checkpoints:
        console.print(f"  [cyan]•[/] {checkpoint}")


def ask_install_paths(config: Config) -> tuple[Path, Path]:
    install = ask_path(t("install_path_prompt"), default=str(config.default_install_path))
    install_path = Path(sanitize_input(install)).expanduser() if install else config.default_install_path
    return install_path, config.default_cache_path


def main_menu() -> Optional[str]:
    """Display main menu and get user choice."""
    choices = [
        questionary.Choice(t("menu_install"), value="install"),
        questionary.Choice(t("menu_precheck"), value="precheck"),
        questionary.Choice(t("menu_winecfg"), value="winecfg"),
        questionary.Choice(t("menu_uninstall"), value="uninstall"),
        questionary.Choice(t("menu_checkpoints"), value="checkpoints"),
        questionary.Choice(t("menu_language"), value="language"),
        questionary.Choice(t("menu_exit"), value="exit"),
    ]
    return ask_select(t("menu_prompt"), choices)


def interactive_setup(config: Config) -> int:
    while True:
        console.print()
        action = main_menu()

        if action == "install":
            install_path, cache_path = ask_install_paths(config)
            return run_install_flow(config, install_path, cache_path)
        elif action == "precheck":
            run_guarded(lambda: run_precheck_flow(config))
        elif action == "winecfg":
            run_guarded(lambda: run_winecfg_flow(config))
        elif action == "uninstall":
            return run_uninstall_flow(config)
        elif action == "checkpoints":
            run_checkpoints_flow(config)
        elif action == "language":
            toggle_language()
        elif action == "exit" or action is None:
            console.print(f"[cyan]{t('goodbye')}[/]")
            return EXIT_OK


# =============================================================================
# Entry Points
# =============================================================================

def setup_main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="photoshop-setup",
                                     description="Install Adobe Photoshop CC on Linux with Wine")
    parser.add_argument("-d", "--install-dir", type=Path, help="installation directory")
    parser.add_argument("-c", "--cache-dir", type=Path, help="cache directory")
    variant = parser.add_mutually_exclusive_group()
    variant.add_argument("--wine-standard", action="store_true", help="build the prefix with system Wine")
    variant.add_argument("--proton-ge", action="store_true", help="build the prefix with Proton GE")
    parser.add_argument("--install", action="store_true", help="install without showing the menu")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    add_verbose(parser)
    args = parser.parse_args(argv)

    def body() -> int:
        config = start("setup", args.verbose)
        display_banner()
        UpdateChecker(config.update_cache_file, config.update_cache_ttl).check_async()

        chosen_variant = requested_variant(args.wine_standard, args.proton_ge)
        if args.install or args.install_dir or args.cache_dir or chosen_variant:
            return run_install_flow(config, args.install_dir, args.cache_dir, chosen_variant)
        return interactive_setup(config)

    return run_guarded(body)


def uninstall_main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="photoshop-uninstall", description="Remove Photoshop CC")
    add_verbose(parser)
    args = parser.parse_args(argv)
    return run_guarded(lambda: run_uninstall_flow(start("uninstall", args.verbose)))


def launch_main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="photoshop-launch", description="Start Photoshop CC")
    parser.add_argument("files", nargs="*", help="files to open")
    add_verbose(parser)
    args = parser.parse_args(argv)
    return run_guarded(lambda: launch(start("launcher", args.verbose), args.files))


def winecfg_main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="photoshop-winecfg",
                                     description="Open winecfg for the Photoshop prefix")
    add_verbose(parser)
    args = parser.parse_args(argv)
    return run_guarded(lambda: run_winecfg_flow(start("winecfg", args.verbose)))


def kill_main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="photoshop-kill",
                                     description="Terminate Photoshop and its Wine processes")
    add_verbose(parser)
    args = parser.parse_args(argv)

    def body() -> int:
        config = start("kill", args.verbose)
        record = InstallationRecord.load(config.datafile, strict=False)
        if record.install_path is None:
            error(t("not_installed"))
            return EXIT_FAILURE

        section("Stopping Photoshop")
        if kill_photoshop(record.install_path / "prefix"):
            success(t("kill_done"))
            return EXIT_OK
        error(t("kill_survivors"))
        info("Try manually: pkill -9 -f Photoshop.exe")
        return EXIT_FAILURE

    return run_guarded(body)
