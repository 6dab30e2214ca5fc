"""
Photoshop Linux - pre-installation system check.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import Config
from .system import command_exists, detect_arch, is_64bit
from .wine import find_proton_ge, wine_version

REQUIRED_DISK_GB = 5
RECOMMENDED_RAM_GB = 8
MINIMUM_RAM_GB = 4

OK = "ok"
WARNING = "warning"
ERROR = "error"


@dataclass
class CheckResult:
    label: str
    status: str
    detail: str = ""

    @property
    def passed(self) -> bool:
        return self.status != ERROR


def total_ram_gb(meminfo: Path = Path("/proc/meminfo")) -> Optional[int]:
    try:
        for line in meminfo.read_text().splitlines():
            if line.startswith("MemTotal:"):
                return int(line.split()[1]) // (1024 * 1024)
    except (OSError, ValueError, IndexError):
        return None
    return None


def check_architecture() -> CheckResult:
    if is_64bit():
        return CheckResult("Architecture", OK, f"64-bit system ({detect_arch()})")
    return CheckResult("Architecture", ERROR, f"{detect_arch()} is not 64-bit, Photoshop needs x86_64")


def check_tools(home: Path) -> list[CheckResult]:
    results = []
    if command_exists("wine"):
        results.append(CheckResult("wine", OK, wine_version()))
    else:
        results.append(CheckResult("wine", ERROR, "not installed"))

    if command_exists("winetricks"):
        results.append(CheckResult("winetricks", OK, "installed"))
    else:
        results.append(CheckResult("winetricks", ERROR, "not installed"))

    proton = find_proton_ge(home)
    results.append(CheckResult("Proton GE", OK if proton else WARNING,
                               str(proton) if proton else "not found (optional)"))
    return results


def check_disk_space(path: Path) -> CheckResult:
    target = path if path.exists() else path.parent
    free_gb = shutil.disk_usage(target).free // (1024 ** 3)
    status = OK if free_gb >= REQUIRED_DISK_GB else ERROR
    return CheckResult("Disk space", status, f"{free_gb}GB free ({REQUIRED_DISK_GB}GB required)")


def check_memory() -> CheckResult:
    ram = total_ram_gb()
    if ram is None:
        return CheckResult("Memory", WARNING, "could not be determined")
    if ram >= RECOMMENDED_RAM_GB:
        return CheckResult("Memory", OK, f"{ram}GB")
    if ram >= MINIMUM_RAM_GB:
        return CheckResult("Memory", WARNING, f"{ram}GB (works, {RECOMMENDED_RAM_GB}GB recommended)")
    return CheckResult("Memory", ERROR, f"{ram}GB (at least {MINIMUM_RAM_GB}GB required)")


def check_installer(installer_dir: Path) -> list[CheckResult]:
    setup_exe = installer_dir / "Set-up.exe"
    if not setup_exe.is_file():
        return [CheckResult("Installer", ERROR, f"not found: {setup_exe}")]

    size_mb = setup_exe.stat().st_size // (1024 * 1024)
    results = [CheckResult("Installer", OK, f"Set-up.exe ({size_mb}MB)")]
    for dirname in ("packages", "products"):
        directory = installer_dir / dirname
        if directory.is_dir():
            count = sum(1 for p in directory.rglob("*") if p.is_file())
            results.append(CheckResult(dirname.capitalize(), OK, f"{count} files"))
        else:
            results.append(CheckResult(dirname.capitalize(), ERROR, f"missing: {directory}"))
    return results


def check_previous_installation(config: Config) -> CheckResult:
    if config.default_install_path.exists() or config.datafile.exists():
        return CheckResult("Previous installation", WARNING,
                           f"found in {config.default_install_path}, it will be replaced")
    return CheckResult("Previous installation", OK, "none")


def run_precheck(config: Config) -> list[CheckResult]:
    results = [check_architecture()]
    results += check_tools(config.home)
    results.append(check_disk_space(config.home))
    results.append(check_memory())
    results += check_installer(config.installer_dir)
    results.append(check_previous_installation(config))
    return results
