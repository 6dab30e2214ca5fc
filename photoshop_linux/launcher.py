"""
Photoshop Linux - starting Photoshop inside its Wine prefix.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from .config import Config, InstallContext
from .constants import VC_REDIST_URL
from .desktop import launcher_icon
from .downloads import download_component
from .errors import DownloadError, ExternalToolError, PrerequisiteMissing, UnsafePathError
from .i18n import t
from .photoshop import find_photoshop_exe, pe_machine, searched_exe_paths
from .record import InstallationRecord
from .security import validate_path
from .system import notify
from .ui import console, display_panel, error, info, warning
from .wine import Wine, runtime_environment

logger = logging.getLogger(__name__)


# =============================================================================
# Prefix Repairs
# =============================================================================

def fix_msvcp140(wine: Wine, context: InstallContext) -> bool:
    """
    Replace an ARM64 msvcp140.dll in an x64 prefix with the official VC++ runtime.

    The broken DLL is kept as ``msvcp140.dll.bak`` and put back if the
    redistributable does not produce an x86-64 DLL.
    """
    dll = context.drive_c / "windows/system32/msvcp140.dll"
    if not dll.is_file() or pe_machine(dll) != "ARM64":
        return True

    logger.warning("msvcp140.dll has the wrong architecture (ARM64 instead of x86-64), repairing")
    backup = dll.with_name(dll.name + ".bak")
    dll.replace(backup)

    try:
        redist = download_component(context.cache_path / "vc_redist.x64.exe", VC_REDIST_URL)
        logger.info("Installing Visual C++ 2015-2022 Redistributable x64")
        wine.run(str(redist), "/quiet", "/norestart")
    except (DownloadError, PrerequisiteMissing, ExternalToolError) as e:
        logger.warning("Could not install the VC++ redistributable: %s", e)

    if dll.is_file() and pe_machine(dll) == "AMD64":
        backup.unlink(missing_ok=True)
        logger.info("msvcp140.dll architecture fixed (x86-64)")
        return True

    logger.warning("msvcp140.dll is still not x86-64, restoring the previous file")
    if backup.is_file():
        backup.replace(dll)
    return False


# =============================================================================
# Launch
# =============================================================================

def windows_arguments(wine: Wine, files: Sequence[str]) -> list[str]:
    """Windows paths for the existing files and directories among ``files``."""
    converted = []
    for name in files:
        path = Path(name)
        if not path.exists():
            logger.debug("Ignoring missing file argument: %s", name)
            continue
        windows_path = wine.to_windows_path(path)
        converted.append(windows_path)
        info(f"Opening file: {path.name}")
        logger.info("Opening file: %s -> %s", name, windows_path)
    return converted


def show_launch_banner(context: InstallContext, exe: Path) -> None:
    if context.uses_proton:
        wine_label = f"Proton GE ({context.proton_path or context.wine_variant})"
    else:
        wine_label = "Wine Standard"
    display_panel(
        f"""[cyan]Photoshop:[/] {exe}
[cyan]Wine prefix:[/] {context.wine_prefix}
[cyan]Wine:[/] {wine_label}

[dim]The first start can take 1-2 minutes.
On crashes disable GPU acceleration in Photoshop (Ctrl+K).
On 'VCRUNTIME140.dll' errors run photoshop-winecfg.[/]""",
        title="Adobe Photoshop - Linux Launcher",
    )


def launch(config: Config, files: Sequence[str] = ()) -> int:
    """Start Photoshop and return Wine's exit code."""
    context = InstallationRecord.load(config.datafile, strict=True).to_context()
    if not validate_path(context.wine_prefix):
        raise UnsafePathError(f"WINEPREFIX points to a system directory: {context.wine_prefix}")
    if not context.wine_prefix.is_dir():
        notify("Photoshop CC", "Wine prefix not found! Please reinstall Photoshop.")
        raise PrerequisiteMissing(f"Wine prefix not found: {context.wine_prefix}")

    wine = Wine(context, log_file=context.runtime_log)
    wine.ensure_windows_10()
    fix_msvcp140(wine, context)

    exe = find_photoshop_exe(context)
    if exe is None:
        notify("Photoshop", "Photoshop.exe not found! Check the installation.")
        error(t("exe_not_found"))
        for path in searched_exe_paths(context):
            console.print(f"  [red]✗[/] {path}")
        return 1

    show_launch_banner(context, exe)
    console.print(f"\n[bold cyan]{t('starting_photoshop')}[/]")
    notify("Photoshop", t("starting_photoshop"), launcher_icon(context))

    args = windows_arguments(wine, files)
    env = runtime_environment(context, base=wine.env())
    logger.info("Starting Photoshop: %s", exe)

    with open(context.runtime_log, "a", encoding="utf-8") as log_file:
        try:
            result = subprocess.run(["wine", str(exe), *args], stdout=log_file,
                                    stderr=subprocess.STDOUT, env=env)
        except FileNotFoundError as e:
            raise PrerequisiteMissing("wine is not installed") from e

    if result.returncode != 0:
        warning(f"Photoshop exited with code {result.returncode}")
        info(f"Check the log: {context.runtime_log}")
    logger.info("Wine exited with code %d", result.returncode)
    return result.returncode


def main(argv: Optional[Sequence[str]] = None) -> int:
    from .cli import launch_main
    return launch_main(argv)


if __name__ == "__main__":
    raise SystemExit(main())
