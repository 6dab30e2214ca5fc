"""
Photoshop Linux - runtime configuration and installation context.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .constants import (
    COMMAND_LINK,
    DATAFILE_NAME,
    DEFAULT_CACHE_DIRNAME,
    DEFAULT_INSTALL_DIRNAME,
    RUNTIME_LOG_NAME,
    STATE_DIRNAME,
    UPDATE_CACHE_TTL,
    WINE_VARIANT_PROTON,
)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _env_path(name: str, default: Path) -> Path:
    value = os.environ.get(name, "").strip()
    return Path(value).expanduser() if value else default


@dataclass
class Config:
    """Application configuration."""
    home: Path = field(default_factory=Path.home)
    installer_dir: Path = PROJECT_ROOT / "photoshop"
    icon_source: Path = PROJECT_ROOT / "images" / "AdobePhotoshop-icon.png"
    command_link: Path = Path(COMMAND_LINK)
    checkpoint_dir: Optional[Path] = None
    log_dir: Optional[Path] = None
    update_cache_file: Optional[Path] = None
    update_cache_ttl: int = UPDATE_CACHE_TTL
    prefix_timeout: int = 120
    poll_interval: int = 2
    retry_attempts: int = 3

    def __post_init__(self) -> None:
        if self.checkpoint_dir is None:
            self.checkpoint_dir = self.state_path / "checkpoints"
        if self.log_dir is None:
            self.log_dir = self.state_path / "logs"
        if self.update_cache_file is None:
            self.update_cache_file = self.state_path / ".update_cache"

    @property
    def state_path(self) -> Path:
        return self.home / STATE_DIRNAME

    @property
    def datafile(self) -> Path:
        return self.home / DATAFILE_NAME

    @property
    def default_install_path(self) -> Path:
        return self.home / DEFAULT_INSTALL_DIRNAME

    @property
    def default_cache_path(self) -> Path:
        return self.home / DEFAULT_CACHE_DIRNAME

    @property
    def applications_path(self) -> Path:
        return self.home / ".local/share/applications"

    @property
    def mime_path(self) -> Path:
        return self.home / ".local/share/mime"

    @property
    def icons_path(self) -> Path:
        return self.home / ".local/share/icons/hicolor"

    @classmethod
    def from_env(cls) -> Config:
        """Build a configuration honouring the environment overrides."""
        home = Path(os.environ.get("HOME") or Path.home())
        config = cls(home=home)
        config.checkpoint_dir = _env_path("CHECKPOINT_DIR", config.checkpoint_dir)
        config.log_dir = _env_path("PS_LOG_DIR", config.log_dir)
        config.installer_dir = _env_path("PS_INSTALLER_DIR", config.installer_dir)
        config.update_cache_file = _env_path("UPDATE_CACHE_FILE", config.update_cache_file)
        ttl = os.environ.get("UPDATE_CACHE_TTL", "").strip()
        if ttl.isdigit():
            config.update_cache_ttl = int(ttl)
        return config


@dataclass
class InstallContext:
    """Paths of one Photoshop installation, handed to every component."""
    install_path: Path
    cache_path: Path
    wine_variant: str = ""

    @property
    def wine_prefix(self) -> Path:
        return self.install_path / "prefix"

    @property
    def resources_path(self) -> Path:
        return self.install_path / "resources"

    @property
    def launcher_path(self) -> Path:
        return self.install_path / "launcher"

    @property
    def drive_c(self) -> Path:
        return self.wine_prefix / "drive_c"

    @property
    def runtime_log(self) -> Path:
        return self.install_path / RUNTIME_LOG_NAME

    @property
    def uses_proton(self) -> bool:
        return "proton" in self.wine_variant.lower()

    @property
    def proton_path(self) -> Optional[Path]:
        """Proton GE directory encoded in a ``proton-ge:<path>`` variant tag."""
        prefix = f"{WINE_VARIANT_PROTON}:"
        if self.wine_variant.startswith(prefix) and len(self.wine_variant) > len(prefix):
            return Path(self.wine_variant[len(prefix):])
        return None
