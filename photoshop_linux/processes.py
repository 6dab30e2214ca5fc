"""
Photoshop Linux - stopping Photoshop and the Wine processes of its prefix.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Optional

from .system import command_exists

logger = logging.getLogger(__name__)

PHOTOSHOP_PROCESS = "Photoshop.exe"


def _run(argv: list[str], env: Optional[dict] = None) -> bool:
    try:
        return subprocess.run(argv, capture_output=True, env=env, timeout=30).returncode == 0
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("%s failed: %s", argv[0], e)
        return False


def pkill(pattern: str, force: bool = False) -> bool:
    """True when at least one process matched."""
    argv = ["pkill"] + (["-9"] if force else []) + ["-f", pattern]
    return _run(argv)


def is_running(pattern: str = PHOTOSHOP_PROCESS) -> bool:
    return _run(["pgrep", "-f", pattern])


def kill_wineserver(prefix: Optional[Path] = None) -> bool:
    if not command_exists("wineserver"):
        logger.debug("wineserver not found")
        return False
    env = None
    if prefix is not None:
        env = os.environ.copy()
        env["WINEPREFIX"] = str(prefix)
    return _run(["wineserver", "-k"], env=env)


def kill_photoshop(prefix: Optional[Path], settle: float = 1) -> bool:
    """
    Terminate Photoshop and the wineserver of ``prefix``.

    Escalates to SIGKILL for survivors. Returns True when no Photoshop
    process is left.
    """
    if pkill(PHOTOSHOP_PROCESS):
        logger.info("Photoshop processes terminated")
    else:
        logger.info("No Photoshop processes found")

    if prefix is not None and prefix.is_dir():
        if kill_wineserver(prefix):
            logger.info("Wine server stopped")
        if pkill("wine.*Photoshop"):
            logger.info("Wine Photoshop processes terminated")
    else:
        logger.warning("Wine prefix not found: %s", prefix)

    time.sleep(settle)

    if is_running():
        logger.warning("Some processes are still running, force killing")
        pkill(PHOTOSHOP_PROCESS, force=True)
        kill_wineserver(prefix)
        time.sleep(settle)

    return not is_running()


def stop_prefix_processes(install_path: Optional[Path], settle: float = 1) -> None:
    """Stop every Wine and Proton process belonging to an installation."""
    kill_wineserver()
    if install_path is None:
        return

    prefix = install_path / "prefix"
    if prefix.is_dir():
        kill_wineserver(prefix)

    for runtime in ("wine", "proton"):
        if pkill(f"{runtime}.*{install_path}"):
            logger.debug("Killed %s processes of %s", runtime, install_path)
    time.sleep(settle)
