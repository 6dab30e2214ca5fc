"""
Photoshop Linux - checking GitHub for a newer release.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Optional

import requests

from . import __version__
from .constants import UPDATE_REPO
from .downloads import create_session
from .ui import display_panel

logger = logging.getLogger(__name__)

RELEASES_API = f"https://api.github.com/repos/{UPDATE_REPO}/releases/latest"


def version_tuple(version: str) -> tuple[int, int, int]:
    """Parse "v3.1" as (3, 1, 0); non-numeric parts count as 0."""
    parts = []
    for part in version.strip().lstrip("vV").split(".")[:3]:
        digits = "".join(ch for ch in part if ch.isdigit())
        parts.append(int(digits) if digits else 0)
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def is_newer(current: str, latest: str) -> bool:
    return version_tuple(current) < version_tuple(latest)


class UpdateChecker:
    """Looks up the latest release tag, caching the answer on disk."""

    def __init__(self, cache_file: Path, ttl: int, session: Optional[requests.Session] = None,
                 current_version: str = __version__) -> None:
        self.cache_file = cache_file
        self.ttl = ttl
        self.session = session or create_session()
        self.current_version = current_version

    def _cached(self) -> Optional[str]:
        try:
            age = time.time() - self.cache_file.stat().st_mtime
            if age < self.ttl:
                return self.cache_file.read_text().strip() or None
        except OSError:
            return None
        return None

    def latest_version(self, force: bool = False) -> Optional[str]:
        if not force:
            cached = self._cached()
            if cached:
                return cached

        try:
            response = self.session.get(RELEASES_API, timeout=30)
            response.raise_for_status()
            tag = response.json().get("tag_name", "")
        except (requests.RequestException, ValueError) as e:
            logger.debug("Update check failed: %s", e)
            return None

        if tag:
            try:
                self.cache_file.parent.mkdir(parents=True, exist_ok=True)
                self.cache_file.write_text(f"{tag}\n")
            except OSError as e:
                logger.debug("Cannot write update cache %s: %s", self.cache_file, e)
        return tag or None

    def check(self, force: bool = False) -> Optional[str]:
        """The newer release tag, or None when up to date or unknown."""
        latest = self.latest_version(force)
        if latest and is_newer(self.current_version, latest):
            return latest
        return None

    def notify(self, latest: Optional[str] = None) -> bool:
        latest = latest or self.check()
        if not latest:
            return False
        display_panel(
            f"""[cyan]Current version:[/] {self.current_version}
[cyan]New version:[/] [bold green]{latest}[/]

[cyan]Repository:[/] https://github.com/{UPDATE_REPO}
[cyan]Releases:[/] https://github.com/{UPDATE_REPO}/releases""",
            title="Update Available",
            style="yellow",
        )
        return True

    def check_async(self) -> threading.Thread:
        """Run the check in a daemon thread; a newer release is only logged."""
        def worker() -> None:
            latest = self.check()
            if latest:
                logger.info("Update available: %s", latest)

        thread = threading.Thread(target=worker, name="update-check", daemon=True)
        thread.start()
        return thread
