"""
Photoshop Linux - retrying flaky external commands.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from typing import Callable, Optional, Sequence, Union

logger = logging.getLogger(__name__)

Command = Union[str, Sequence[str], Callable[[], int]]

COMMAND_NOT_FOUND = 127


def run_command(command: Command, env: Optional[dict] = None, timeout: Optional[int] = None) -> int:
    """Run a command string, argv list or callable once and return its exit code."""
    if callable(command):
        return int(command())

    argv = shlex.split(command) if isinstance(command, str) else list(command)
    if not argv:
        return COMMAND_NOT_FOUND

    try:
        result = subprocess.run(argv, capture_output=True, env=env, timeout=timeout)
    except FileNotFoundError:
        logger.debug("Command not found: %s", argv[0])
        return COMMAND_NOT_FOUND
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out after %ss: %s", timeout, _describe(command))
        return 124

    if result.returncode != 0 and result.stderr:
        logger.debug("%s: %s", argv[0], result.stderr.decode(errors="replace").strip())
    return result.returncode


def _describe(command: Command) -> str:
    if callable(command):
        return getattr(command, "__name__", repr(command))
    return command if isinstance(command, str) else " ".join(command)


def retry_with_backoff(command: Command, max_attempts: int = 3, initial_delay: float = 1,
                       max_delay: float = 60, multiplier: float = 2,
                       env: Optional[dict] = None, timeout: Optional[int] = None) -> int:
    """
    Run ``command`` until it succeeds or ``max_attempts`` runs have failed.

    The delay between attempts starts at ``initial_delay`` and is multiplied
    by ``multiplier`` after each failure, capped at ``max_delay``. Returns 0 on
    success, otherwise the exit code of the last attempt.
    """
    delay = initial_delay
    exit_code = 1

    for attempt in range(1, max(max_attempts, 1) + 1):
        exit_code = run_command(command, env=env, timeout=timeout)
        if exit_code == 0:
            if attempt > 1:
                logger.info("%s succeeded on attempt %d", _describe(command), attempt)
            return 0

        logger.debug("Attempt %d/%d of %s failed with exit code %d",
                     attempt, max_attempts, _describe(command), exit_code)
        if attempt < max_attempts:
            time.sleep(delay)
            delay = min(delay * multiplier, max_delay)

    logger.warning("%s failed after %d attempts (exit code %d)",
                   _describe(command), max_attempts, exit_code)
    return exit_code


def retry_simple(command: Command, max_attempts: int = 3, delay: float = 1,
                 env: Optional[dict] = None) -> int:
    """Retry with a fixed ``delay`` between attempts."""
    return retry_with_backoff(command, max_attempts, initial_delay=delay,
                              max_delay=delay, multiplier=1, env=env)
