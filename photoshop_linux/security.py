"""
Photoshop Linux - path validation, input sanitising and guarded removal.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, Optional, Union
from urllib.parse import urlparse

from .constants import (
    ALLOWED_URL_DOMAINS,
    SHELL_METACHARACTERS,
    SYSTEM_PATH_DENYLIST,
    UNSAFE_HOMES,
)
from .errors import PhotoshopLinuxError, UnsafePathError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# =============================================================================
# Validation
# =============================================================================

def validate_path(path: PathLike, permitted_roots: Optional[Iterable[PathLike]] = None) -> bool:
    """
    Check that a path is safe to create, overwrite or delete.

    Rejects empty paths, anything containing ``..`` and anything under a
    system directory. With ``permitted_roots`` the canonical path (symlinks
    resolved) must also lie inside one of the roots.
    """
    text = str(path) if path is not None else ""
    if not text:
        return False
    if ".." in text:
        return False
    if any(text.startswith(prefix) for prefix in SYSTEM_PATH_DENYLIST):
        return False

    if permitted_roots is None:
        return True

    return PathGuard(permitted_roots).allows(text)


def is_safe_home(home: Optional[PathLike] = None) -> bool:
    value = str(home) if home is not None else os.environ.get("HOME", "")
    return value.rstrip("/") not in UNSAFE_HOMES


def sanitize_input(text: str) -> str:
    """Strip shell metacharacters from free-form user input ("a;b" -> "ab")."""
    for token in SHELL_METACHARACTERS:
        text = text.replace(token, "")
    return text


def validate_url(url: str, allowed_domains: Iterable[str] = ALLOWED_URL_DOMAINS,
                 require_https: bool = True) -> bool:
    """Accept only URLs whose host is, or is a subdomain of, an allowed domain."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False

    if parsed.scheme not in (("https",) if require_https else ("http", "https")):
        return False

    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    if not host:
        return False

    return any(host == domain or host.endswith(f".{domain}") for domain in allowed_domains)


def check_file_permissions(path: PathLike, max_mode: int = 0o755) -> bool:
    """Return True when ``path`` is a regular file no more permissive than ``max_mode``."""
    path = Path(path)
    if not path.is_file():
        return False
    return (path.stat().st_mode & 0o777) <= max_mode


# =============================================================================
# Path Guard
# =============================================================================

class PathGuard:
    """Allow-list of directory roots that destructive operations may touch."""

    def __init__(self, permitted_roots: Iterable[PathLike]) -> None:
        self.roots: list[Path] = []
        for root in permitted_roots:
            if root and validate_path(root):
                self.roots.append(Path(root).expanduser().resolve())
        self.protected = {Path("/"), Path.home().resolve()}

    @classmethod
    def for_installation(cls, home: Path, *paths: Optional[Path]) -> PathGuard:
        """Guard permitting the home directory plus the recorded install paths."""
        guard = cls([home, *[p for p in paths if p]])
        guard.protected.add(home.expanduser().resolve())
        return guard

    def allows(self, path: PathLike) -> bool:
        text = str(path)
        if not validate_path(text):
            return False

        resolved = Path(text).expanduser().resolve()
        if not validate_path(str(resolved)) or resolved in self.protected:
            return False

        return any(resolved == root or root in resolved.parents for root in self.roots)

    def check(self, path: PathLike) -> Path:
        """Return the path unchanged, or raise UnsafePathError."""
        if not self.allows(path):
            raise UnsafePathError(f"Refusing to modify path outside permitted roots: {path}")
        return Path(path)


# =============================================================================
# Filesystem Operations
# =============================================================================

def safe_remove(path: PathLike, guard: Optional[PathGuard] = None, context: str = "safe_remove") -> bool:
    """
    Remove a file or directory tree after validating it.

    Returns True if something was removed and False if the path did not exist.
    Unsafe paths raise UnsafePathError; removal failures raise PhotoshopLinuxError.
    """
    text = str(path) if path is not None else ""
    if not text:
        raise UnsafePathError(f"{context}: path is empty")
    if text.rstrip("/") in ("", "/root"):
        raise UnsafePathError(f"{context}: refusing to remove {text}")
    if not validate_path(text):
        raise UnsafePathError(f"{context}: unsafe path: {text}")
    if guard is not None:
        guard.check(text)

    target = Path(text)
    if not target.exists() and not target.is_symlink():
        logger.debug("%s: path does not exist (skipping): %s", context, target)
        return False

    try:
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()
    except OSError as e:
        raise PhotoshopLinuxError(f"{context}: failed to remove {target}: {e}") from e

    logger.debug("%s: removed %s", context, target)
    return True


def recreate_directory(path: PathLike, guard: Optional[PathGuard] = None) -> Path:
    """Remove ``path`` if it exists and create it again, empty."""
    safe_remove(path, guard, context="recreate_directory")
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target
