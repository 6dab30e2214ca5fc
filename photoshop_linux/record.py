"""
Photoshop Linux - persisted installation record (~/.psdata.txt).

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.

The record is a plain text file: line 1 is the install path, line 2 the cache
path and the optional line 3 the Wine variant the prefix was built with.
Files written before the variant was recorded only have two lines.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import InstallContext
from .errors import InstallationRecordError
from .security import is_safe_home, sanitize_input, validate_path

logger = logging.getLogger(__name__)


@dataclass
class InstallationRecord:
    """Where Photoshop was installed and which Wine built its prefix."""
    install_path: Optional[Path] = None
    cache_path: Optional[Path] = None
    wine_variant: str = ""

    @property
    def is_empty(self) -> bool:
        return self.install_path is None and self.cache_path is None

    def to_lines(self) -> list[str]:
        lines = [str(self.install_path), str(self.cache_path)]
        if self.wine_variant:
            lines.append(self.wine_variant)
        return lines

    @classmethod
    def from_context(cls, context: InstallContext) -> InstallationRecord:
        return cls(context.install_path, context.cache_path, context.wine_variant)

    def to_context(self) -> InstallContext:
        if self.install_path is None or self.cache_path is None:
            raise InstallationRecordError("Installation record has no paths")
        return InstallContext(self.install_path, self.cache_path, self.wine_variant)

    def save(self, datafile: Path) -> None:
        """Validate and write the record."""
        for label, path in (("install path", self.install_path), ("cache path", self.cache_path)):
            if path is None or not str(path):
                raise InstallationRecordError(f"The {label} is empty")
            if not validate_path(path):
                raise InstallationRecordError(f"The {label} points to a system directory: {path}")

        if not is_safe_home():
            raise InstallationRecordError("Refusing to write the installation record: unsafe HOME")

        datafile.write_text("\n".join(self.to_lines()) + "\n")
        logger.info("Saved installation record to %s", datafile)

    @classmethod
    def load(cls, datafile: Path, strict: bool = True) -> InstallationRecord:
        """
        Read the record.

        In strict mode every problem raises InstallationRecordError and both
        directories must exist. Otherwise a missing file gives an empty record
        and unusable values are dropped with a warning, so the uninstaller can
        still clean up whatever is left.
        """
        def fail(message: str) -> None:
            if strict:
                raise InstallationRecordError(message)
            logger.warning(message)

        try:
            lines = datafile.read_text().splitlines()
        except FileNotFoundError:
            fail(f"Installation data file not found: {datafile}")
            return cls()
        except OSError as e:
            fail(f"Cannot read installation data file {datafile}: {e}")
            return cls()

        values = [line.strip() for line in lines]
        values += [""] * (3 - len(values))
        paths: list[Optional[Path]] = []

        for label, value in (("install path", values[0]), ("cache path", values[1])):
            if not value:
                fail(f"The {label} is empty or corrupted in {datafile}")
                paths.append(None)
            elif not validate_path(value):
                fail(f"The {label} in {datafile} points to a system directory: {value}")
                paths.append(None)
            else:
                paths.append(Path(value))

        record = cls(paths[0], paths[1], sanitize_input(values[2]))

        if strict:
            for label, path in (("Installation", record.install_path), ("Cache", record.cache_path)):
                if not path.is_dir():
                    raise InstallationRecordError(f"{label} directory does not exist: {path}")

        return record

    @staticmethod
    def delete(datafile: Path) -> bool:
        if datafile.is_file() or datafile.is_symlink():
            datafile.unlink()
            logger.info("Removed installation record %s", datafile)
            return True
        return False
