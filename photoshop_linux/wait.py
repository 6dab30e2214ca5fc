"""
Photoshop Linux - waiting for Wine to finish writing files.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _size(path: Path) -> Optional[int]:
    try:
        return path.stat().st_size
    except OSError:
        return None


def wait_for_stable_file(path: Path, timeout: float = 120, interval: float = 2) -> bool:
    """
    Poll ``path`` until its size stops changing.

    The file counts as ready once two consecutive polls see the same non-zero
    size. If the timeout passes first, a file that exists and is non-empty is
    accepted anyway; a file that never appeared is a failure.
    """
    deadline = time.monotonic() + timeout
    previous: Optional[int] = None

    while True:
        size = _size(path)
        if size and size == previous:
            logger.debug("%s is stable at %d bytes", path, size)
            return True
        previous = size

        if time.monotonic() >= deadline:
            break
        time.sleep(interval)

    size = _size(path)
    if size:
        logger.warning("Timed out waiting for %s to settle, continuing with %d bytes", path, size)
        return True

    logger.warning("%s did not appear within %ss", path, timeout)
    return False


def wait_for_wine_prefix(prefix: Path, timeout: float = 120, interval: float = 2) -> bool:
    """Wait until Wine has written the prefix registry files."""
    if not wait_for_stable_file(prefix / "system.reg", timeout, interval):
        return False
    user_reg = prefix / "user.reg"
    return wait_for_stable_file(user_reg, min(timeout, interval * 3), interval)
