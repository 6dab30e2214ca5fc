"""
Photoshop Linux - verified component downloads.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Optional

import requests
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from . import __version__
from .constants import ALLOWED_DOWNLOAD_DOMAINS
from .errors import DownloadError
from .security import validate_path, validate_url
from .ui import console

logger = logging.getLogger(__name__)

MAX_DOWNLOAD_ATTEMPTS = 3
CHUNK_SIZE = 8192


def create_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": f"Photoshop-Linux-Installer/{__version__}"})
    return session


def file_md5(path: Path) -> str:
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _stream_to_file(session: requests.Session, url: str, destination: Path, name: str) -> None:
    with Progress(
        SpinnerColumn(),
        TextColumn(f"[cyan]Downloading {name}..."),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Download", total=100)

        response = session.get(url, stream=True, timeout=60)
        response.raise_for_status()
        total = int(response.headers.get("content-length", 0))

        with open(destination, "wb") as f:
            downloaded = 0
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                f.write(chunk)
                downloaded += len(chunk)
                if total:
                    progress.update(task, completed=int(downloaded * 100 / total))
        progress.update(task, completed=100)


def download_component(destination: Path, url: str, name: Optional[str] = None,
                       md5: Optional[str] = None,
                       session: Optional[requests.Session] = None) -> Path:
    """
    Download ``url`` to ``destination`` unless a matching copy is already there.

    Only HTTPS URLs on the download allow-list are fetched. With ``md5`` the
    file must match the checksum: a cached mismatch is deleted and fetched
    again. Gives up with DownloadError after three failed downloads.
    """
    name = name or destination.name
    if not validate_url(url, ALLOWED_DOWNLOAD_DOMAINS):
        raise DownloadError(f"Refusing to download {name} from a non-allowed or non-HTTPS URL: {url}")
    if not validate_path(destination):
        raise DownloadError(f"Unsafe download destination: {destination}")

    session = session or create_session()
    destination.parent.mkdir(parents=True, exist_ok=True)
    attempts = 0

    while True:
        if destination.is_file():
            if md5 is None or file_md5(destination) == md5.lower():
                logger.info("%s detected at %s", name, destination)
                return destination
            logger.warning("md5 of %s does not match, downloading again", name)
            destination.unlink()

        if attempts >= MAX_DOWNLOAD_ATTEMPTS:
            raise DownloadError(f"Something went wrong while downloading {name}")
        attempts += 1

        logger.info("Downloading %s (attempt %d/%d)", name, attempts, MAX_DOWNLOAD_ATTEMPTS)
        try:
            _stream_to_file(session, url, destination, name)
        except (requests.RequestException, OSError) as e:
            logger.warning("Download of %s failed: %s", name, e)
            destination.unlink(missing_ok=True)
