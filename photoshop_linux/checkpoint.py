"""
Photoshop Linux - installation checkpoints and compensating-action rollback.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.

A checkpoint file is a small KEY=value snapshot of the installation state
taken at a milestone. Rolling back replays, newest first, the undo actions the
installer journalled after that milestone in the current process.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .config import InstallContext
from .errors import CheckpointNotFound, PhotoshopLinuxError
from .security import PathGuard, safe_remove

logger = logging.getLogger(__name__)

CHECKPOINT_SUFFIX = ".checkpoint"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
CHECKPOINT_NAME_RE = re.compile(r"[A-Za-z0-9_.-]+")


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class Checkpoint:
    """Installation state captured at a named milestone."""
    name: str
    timestamp: str
    wine_prefix_exists: bool = False
    wine_prefix: str = ""
    scr_path: str = ""
    cache_path: str = ""

    def __str__(self) -> str:
        return f"{self.name} (created: {self.timestamp})"

    @classmethod
    def capture(cls, name: str, context: Optional[InstallContext]) -> Checkpoint:
        checkpoint = cls(name=name, timestamp=datetime.now().strftime(TIMESTAMP_FORMAT))
        if context is not None:
            checkpoint.wine_prefix_exists = context.wine_prefix.is_dir()
            checkpoint.wine_prefix = str(context.wine_prefix) if checkpoint.wine_prefix_exists else ""
            checkpoint.scr_path = str(context.install_path)
            checkpoint.cache_path = str(context.cache_path)
        return checkpoint

    def to_text(self) -> str:
        lines = [
            f"# Checkpoint: {self.name}",
            f"# Created: {self.timestamp}",
            f"CHECKPOINT_NAME={self.name}",
            f"TIMESTAMP={self.timestamp}",
        ]
        if self.wine_prefix_exists:
            lines.append(f"WINE_PREFIX={self.wine_prefix}")
        lines.append(f"WINE_PREFIX_EXISTS={'true' if self.wine_prefix_exists else 'false'}")
        if self.scr_path:
            lines.append(f"SCR_PATH={self.scr_path}")
        if self.cache_path:
            lines.append(f"CACHE_PATH={self.cache_path}")
        return "\n".join(lines) + "\n"

    @classmethod
    def from_text(cls, text: str, fallback_name: str = "") -> Checkpoint:
        values: dict[str, str] = {}
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            values[key.strip()] = value.strip()

        return cls(
            name=values.get("CHECKPOINT_NAME", fallback_name),
            timestamp=values.get("TIMESTAMP", "unknown"),
            wine_prefix_exists=values.get("WINE_PREFIX_EXISTS") == "true",
            wine_prefix=values.get("WINE_PREFIX", ""),
            scr_path=values.get("SCR_PATH", ""),
            cache_path=values.get("CACHE_PATH", ""),
        )


@dataclass
class JournalEntry:
    description: str
    undo: Callable[[], None]
    checkpoint: Optional[str] = None


@dataclass
class RollbackJournal:
    """In-process log of compensating actions, grouped by checkpoint marks."""
    entries: list[JournalEntry] = field(default_factory=list)

    def mark(self, checkpoint: str) -> None:
        self.entries.append(JournalEntry(f"checkpoint {checkpoint}", lambda: None, checkpoint))

    def record(self, description: str, undo: Callable[[], None]) -> None:
        """Register the action that reverses a step that just succeeded."""
        self.entries.append(JournalEntry(description, undo))

    def has_mark(self, checkpoint: str) -> bool:
        return any(entry.checkpoint == checkpoint for entry in self.entries)

    def unwind(self, checkpoint: str) -> tuple[int, list[str]]:
        """
        Run undo actions recorded after ``checkpoint``, newest first.

        Returns the number of actions run and the names of the later
        checkpoints that were unwound. Failing actions are logged and skipped.
        """
        marks = [i for i, entry in enumerate(self.entries) if entry.checkpoint == checkpoint]
        if not marks:
            return 0, []

        start = marks[-1] + 1
        undone = 0
        later: list[str] = []

        for entry in reversed(self.entries[start:]):
            if entry.checkpoint is not None:
                later.append(entry.checkpoint)
                continue
            try:
                entry.undo()
                undone += 1
                logger.info("Rolled back: %s", entry.description)
            except (OSError, PhotoshopLinuxError) as e:
                logger.warning("Could not roll back %s: %s", entry.description, e)

        del self.entries[start:]
        return undone, later

    def clear(self) -> None:
        self.entries.clear()


# =============================================================================
# Checkpoint Manager
# =============================================================================

class CheckpointManager:
    """Creates, lists and rolls back installation checkpoints."""

    def __init__(self, checkpoint_dir: Path, guard: Optional[PathGuard] = None) -> None:
        self.checkpoint_dir = checkpoint_dir
        self.guard = guard
        self.journal = RollbackJournal()

    def _path(self, name: str) -> Path:
        if not CHECKPOINT_NAME_RE.fullmatch(name) or name.startswith("."):
            raise PhotoshopLinuxError(f"Invalid checkpoint name: {name!r}")
        return self.checkpoint_dir / f"{name}{CHECKPOINT_SUFFIX}"

    def create(self, name: str, context: Optional[InstallContext] = None) -> Checkpoint:
        """Write a snapshot file for ``name`` and mark the journal."""
        path = self._path(name)
        checkpoint = Checkpoint.capture(name, context)
        self.checkpoint_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(checkpoint.to_text())
        self.journal.mark(name)
        logger.debug("Checkpoint created: %s", name)
        return checkpoint

    def list(self) -> list[Checkpoint]:
        if not self.checkpoint_dir.is_dir():
            return []
        checkpoints = []
        for path in sorted(self.checkpoint_dir.glob(f"*{CHECKPOINT_SUFFIX}")):
            if not path.is_file():
                continue
            try:
                checkpoints.append(Checkpoint.from_text(path.read_text(), path.stem))
            except OSError as e:
                logger.warning("Unreadable checkpoint %s: %s", path, e)
        return checkpoints

    def load(self, name: str) -> Checkpoint:
        path = self._path(name)
        if not path.is_file():
            raise CheckpointNotFound(f"Checkpoint not found: {name}")
        return Checkpoint.from_text(path.read_text(), name)

    def latest(self) -> Optional[str]:
        """Name of the most recent checkpoint of this process, if any."""
        for entry in reversed(self.journal.entries):
            if entry.checkpoint is not None:
                return entry.checkpoint
        return None

    def rollback(self, name: str) -> Checkpoint:
        """
        Undo everything journalled after checkpoint ``name``.

        Checkpoints left by an earlier run have no journal in this process;
        for those only the recorded state is returned.
        """
        checkpoint = self.load(name)
        logger.warning("Rolling back to checkpoint: %s", name)

        if not self.journal.has_mark(name):
            logger.warning("No compensating actions recorded for %s in this session", name)
            return checkpoint

        undone, later = self.journal.unwind(name)
        for later_name in later:
            self._path(later_name).unlink(missing_ok=True)

        logger.info("Rollback to checkpoint %s completed (%d actions undone)", name, undone)
        return checkpoint

    def cleanup(self) -> None:
        """Remove all checkpoints after a successful installation."""
        if self.checkpoint_dir.is_dir():
            safe_remove(self.checkpoint_dir, self.guard, context="checkpoint cleanup")
        self.journal.clear()
        logger.debug("All checkpoints cleaned up")
