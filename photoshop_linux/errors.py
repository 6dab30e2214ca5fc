"""
Photoshop Linux - exception hierarchy.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

from .constants import EXIT_DECLINED, EXIT_FAILURE, EXIT_OK


class PhotoshopLinuxError(Exception):
    """Base error; ``exit_code`` is what the command line tool exits with."""

    exit_code = EXIT_FAILURE


class PrerequisiteMissing(PhotoshopLinuxError):
    """A required package, tool or file is not available."""


class UnsafePathError(PhotoshopLinuxError):
    """A destructive operation was aimed at a path outside the permitted roots."""


class ExternalToolError(PhotoshopLinuxError):
    """Wine, winetricks or another external program failed."""

    def __init__(self, command: str, returncode: int, detail: str = "") -> None:
        self.command = command
        self.returncode = returncode
        message = f"{command} exited with code {returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InstallationRecordError(PhotoshopLinuxError):
    """The saved installation paths are missing, unreadable or unsafe."""


class CheckpointNotFound(PhotoshopLinuxError):
    pass


class DownloadError(PhotoshopLinuxError):
    pass


class UserDeclined(PhotoshopLinuxError):
    """The user answered no to a confirmation prompt."""

    exit_code = EXIT_DECLINED


class InstallationCancelled(PhotoshopLinuxError):
    """The user stopped the installation at a point where that is not an error."""

    exit_code = EXIT_OK
