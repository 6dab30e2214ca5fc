"""
Photoshop Linux - Wine and Proton GE integration.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from .config import InstallContext
from .constants import (
    DARK_MODE_COLORS,
    IE_DLL_OVERRIDES,
    LAUNCH_DLL_OVERRIDES,
    PROTON_FORBIDDEN_SEGMENTS,
    PROTON_SEARCH_DIRS,
    PROTON_SYSTEM_DIRS,
    WINDOWS_VERSION_KEY,
    WINE_VARIANT_PROTON,
    WINE_VARIANT_STANDARD,
)
from .errors import ExternalToolError, PrerequisiteMissing, UnsafePathError
from .retry import retry_with_backoff
from .security import validate_path
from .system import command_exists, kernel_major

logger = logging.getLogger(__name__)


# =============================================================================
# Wine Variant Discovery
# =============================================================================

def is_safe_proton_path(path: Path) -> bool:
    """A Proton GE tree outside temp/Steam dirs with a real, executable wine binary."""
    text = str(path)
    if any(segment in text for segment in PROTON_FORBIDDEN_SEGMENTS):
        return False
    wine_binary = path / "files/bin/wine"
    return wine_binary.is_file() and not wine_binary.is_symlink() and os.access(wine_binary, os.X_OK)


def find_proton_ge(home: Optional[Path] = None) -> Optional[Path]:
    """Locate a system-wide (non-Steam) Proton GE installation."""
    home = home or Path.home()
    candidates = [home / rel for rel in PROTON_SEARCH_DIRS] + [Path(p) for p in PROTON_SYSTEM_DIRS]

    for candidate in candidates:
        real_path = candidate.resolve() if candidate.is_symlink() else candidate
        if not real_path.is_dir():
            continue
        if is_safe_proton_path(real_path):
            logger.debug("Proton GE found: %s", real_path)
            return real_path
        logger.debug("Skipping unsuitable Proton GE candidate: %s", real_path)

    return None


def wine_version(wine: str = "wine") -> str:
    try:
        result = subprocess.run([wine, "--version"], capture_output=True, text=True, timeout=15)
    except (OSError, subprocess.TimeoutExpired):
        return "unknown"
    return result.stdout.strip().splitlines()[0] if result.stdout.strip() else "unknown"


def available_variants(home: Optional[Path] = None) -> list[tuple[str, str, Optional[Path]]]:
    """Installed Wine flavours as (variant, description, proton path), best first."""
    variants: list[tuple[str, str, Optional[Path]]] = []
    proton = find_proton_ge(home)
    if proton is not None:
        variants.append((WINE_VARIANT_PROTON, f"Proton GE ({proton})", proton))
    if command_exists("wine"):
        variants.append((WINE_VARIANT_STANDARD, f"Standard Wine: {wine_version()}", None))
    return variants


def variant_tag(variant: str, proton_path: Optional[Path] = None) -> str:
    """Value stored in the installation record for the chosen Wine flavour."""
    if variant == WINE_VARIANT_PROTON and proton_path is not None:
        return f"{WINE_VARIANT_PROTON}:{proton_path}"
    return variant


# =============================================================================
# Wine Runner
# =============================================================================

class Wine:
    """Runs Wine tools against the Photoshop prefix."""

    def __init__(self, context: InstallContext, log_file: Optional[Path] = None) -> None:
        if not validate_path(context.wine_prefix):
            raise UnsafePathError(f"WINEPREFIX points to a system directory: {context.wine_prefix}")
        self.context = context
        self.log_file = log_file

    @property
    def prefix(self) -> Path:
        return self.context.wine_prefix

    def env(self, extra: Optional[dict] = None) -> dict:
        """Process environment with WINEPREFIX and, for Proton GE, its wine first on PATH."""
        env = os.environ.copy()
        env["WINEPREFIX"] = str(self.prefix)

        proton = self.context.proton_path
        if proton is not None and is_safe_proton_path(proton):
            entries = [p for p in env.get("PATH", "").split(os.pathsep) if p and p != "."]
            env["PATH"] = os.pathsep.join([str(proton / "files/bin")] + entries)
            env["PROTON_VERB"] = "1"

        if extra:
            env.update(extra)
        return env

    def _run(self, argv: Sequence[str], timeout: Optional[int] = None,
             env: Optional[dict] = None) -> subprocess.CompletedProcess:
        logger.debug("Running: %s", " ".join(argv))
        try:
            result = subprocess.run(
                list(argv), capture_output=True, text=True,
                env=env or self.env(), timeout=timeout,
            )
        except FileNotFoundError as e:
            raise PrerequisiteMissing(f"{argv[0]} is not installed") from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(argv[0], 124, f"timed out after {timeout}s") from e

        if self.log_file is not None:
            try:
                with open(self.log_file, "a", encoding="utf-8") as f:
                    f.write(f"$ {' '.join(argv)}\n{result.stdout}{result.stderr}")
            except OSError as e:
                logger.debug("Cannot append to %s: %s", self.log_file, e)
        return result

    def run(self, *args: str, timeout: Optional[int] = None) -> int:
        return self._run(["wine", *args], timeout=timeout).returncode

    def winecfg(self) -> int:
        """Open winecfg; on a fresh prefix this also installs Mono and Gecko."""
        return self._run(["winecfg"]).returncode

    def winetricks(self, verbs: Sequence[str], attempts: int = 3, delay: float = 2) -> int:
        """Install winetricks verbs quietly, retrying with backoff."""
        return retry_with_backoff(
            ["winetricks", "-q", *verbs], max_attempts=attempts,
            initial_delay=delay, env=self.env(),
        )

    def winetricks_background(self, verbs: Sequence[str]) -> Optional[subprocess.Popen]:
        if not command_exists("winetricks"):
            return None
        return subprocess.Popen(
            ["winetricks", "-q", *verbs], env=self.env(),
            stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, start_new_session=True,
        )

    def reg_add(self, key: str, name: str, data: str, value_type: str = "REG_SZ") -> bool:
        result = self._run(["wine", "reg", "add", key, "/v", name, "/t", value_type, "/d", data, "/f"])
        if result.returncode != 0:
            logger.warning("Could not set %s\\%s (exit code %d)", key, name, result.returncode)
        return result.returncode == 0

    def reg_query(self, key: str, name: str) -> str:
        """Data of a registry value, or "" when it cannot be read."""
        try:
            result = self._run(["wine", "reg", "query", key, "/v", name], timeout=60)
        except (PrerequisiteMissing, ExternalToolError) as e:
            logger.debug("Registry query failed: %s", e)
            return ""
        return parse_reg_query(result.stdout, name)

    def windows_version(self) -> str:
        return self.reg_query(WINDOWS_VERSION_KEY, "CurrentVersion")

    def ensure_windows_10(self) -> bool:
        """Start ``winetricks win10`` in the background unless Windows 10 is already set."""
        if not command_exists("winetricks"):
            logger.warning("winetricks not found, cannot check the Windows version")
            return False
        if self.windows_version() == "10.0":
            logger.debug("Windows 10 already set")
            return False
        logger.info("Setting Windows version to Windows 10 in the background")
        self.winetricks_background(["win10"])
        return True

    def set_ie_overrides(self) -> None:
        for dll in IE_DLL_OVERRIDES:
            self.reg_add(r"HKCU\Software\Wine\DllOverrides", dll, "native,builtin")

    def to_windows_path(self, path: Path) -> str:
        """Convert a Linux path for Wine with winepath, falling back to the Z: drive."""
        absolute = path.resolve()
        if command_exists("winepath"):
            try:
                result = self._run(["winepath", "-w", str(absolute)], timeout=30)
                converted = result.stdout.strip()
                if result.returncode == 0 and converted:
                    return converted
            except (PrerequisiteMissing, ExternalToolError):
                pass
        return z_drive_path(absolute)

    def kill_server(self) -> bool:
        """Stop the wineserver of this prefix."""
        try:
            return self._run(["wineserver", "-k"], timeout=30).returncode == 0
        except (PrerequisiteMissing, ExternalToolError) as e:
            logger.debug("wineserver -k failed: %s", e)
            return False


# =============================================================================
# Helpers
# =============================================================================

def parse_reg_query(output: str, name: str) -> str:
    """Extract the data column of ``name`` from ``reg query`` output."""
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 3 and parts[0] == name:
            return parts[2].strip()
    return ""


def z_drive_path(path: Path) -> str:
    return "Z:" + str(path).replace("/", "\\")


def runtime_environment(context: InstallContext, base: Optional[dict] = None) -> dict:
    """Environment Photoshop is launched with."""
    env = dict(base if base is not None else os.environ)
    env.update({
        "WINEPREFIX": str(context.wine_prefix),
        "WINEDEBUG": "-all,+err",
        "MESA_GL_VERSION_OVERRIDE": "3.3",
        "__GL_SHADER_DISK_CACHE": "0",
        "FREETYPE_PROPERTIES": "truetype:interpreter-version=35",
        "WINEDLLOVERRIDES": LAUNCH_DLL_OVERRIDES,
        "WINE_CPU_TOPOLOGY": "4:2",
        "__GL_THREADED_OPTIMIZATIONS": "1",
        "__GL_YIELD": "USLEEP",
        "CSMT": "enabled",
        "DXVK_ASYNC": "0",
        "DXVK_HUD": "0",
    })

    # esync needs eventfd, fsync needs a 5.x kernel with aio
    if Path("/proc/sys/fs/epoll").is_dir() or Path("/dev/shm").exists():
        env["WINEESYNC"] = "1"
        if Path("/proc/sys/fs/aio-max-nr").is_file() and kernel_major() >= 5:
            env["WINEFSYNC"] = "1"
    return env


def dark_mode_block() -> str:
    lines = ["", "[Control Panel\\\\Colors] 1491939580", "#time=1d2b2fb5c69191c"]
    lines += [f'"{name}"="{value}"' for name, value in DARK_MODE_COLORS]
    return "\n".join(lines) + "\n"


def apply_dark_mode(prefix: Path) -> bool:
    """Append the dark colour scheme to the prefix user registry."""
    user_reg = prefix / "user.reg"
    if not user_reg.is_file():
        return False
    with open(user_reg, "a", encoding="utf-8") as f:
        f.write(dark_mode_block())
    logger.info("Dark mode set for Wine")
    return True
