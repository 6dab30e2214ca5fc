"""
Photoshop Linux - logging setup shared by every command.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from .ui import console

DETAILED_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)8s] %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def log_file_path(log_dir: Path, name: str) -> Path:
    """Timestamped log file for one run of ``name``."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return log_dir / f"{name}_{timestamp}.log"


def setup_logging(name: str, log_dir: Optional[Path] = None, verbose: bool = False) -> Optional[Path]:
    """
    Route all ``photoshop_linux`` loggers to the console and a log file.

    The console only shows warnings unless ``verbose`` is set; the file gets
    everything. A second ``_errors.log`` file collects errors only. Returns the
    main log file path, or None when the log directory cannot be created.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    console_handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=verbose,
    )
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.addHandler(console_handler)

    if log_dir is None:
        return None

    log_path = log_file_path(log_dir, name)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path, maxBytes=1024 * 1024, backupCount=5, encoding="utf-8",
        )
        error_handler = RotatingFileHandler(
            log_path.with_name(f"{log_path.stem}_errors.log"),
            maxBytes=1024 * 1024, backupCount=2, encoding="utf-8",
        )
    except OSError as e:
        logging.getLogger(__name__).warning("File logging disabled: %s", e)
        return None

    formatter = logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(error_handler)

    logger = logging.getLogger(__name__)
    logger.info("%s starting", name)
    logger.debug("Log file: %s", log_path)
    logger.debug("Python: %s (%s)", sys.executable, sys.version.split()[0])
    return log_path
