# src/logging/handlers.py - v1
"""File rotation handler for log files.

Size-based rotation keeps on-device log files bounded.
"""

from __future__ import annotations

import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE_PATTERN = re.compile(r"^(\d+)\s*(B|KB|MB|GB)?$", re.IGNORECASE)
_MULTIPLIERS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def parse_size(size_str: str) -> int:
    """Parse size string like '5MB' into bytes.

    A bare number is taken as bytes. Supported suffixes: B, KB, MB, GB
    (case-insensitive).
    """
    match = _SIZE_PATTERN.match(size_str.strip())
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '5MB'.")
    unit = (match.group(2) or "B").upper()
    return int(match.group(1)) * _MULTIPLIERS[unit]


def create_rotating_handler(
    log_file: str | Path,
    rotation: str = "5MB",
    retention: int = 5,
) -> RotatingFileHandler:
    """Create a rotating file handler.

    Args:
        log_file: Path to log file (parent directories are created).
        rotation: Max file size before rotation (e.g. "5MB").
        retention: Number of rotated backup files to keep.

    Returns:
        Configured RotatingFileHandler.
    """
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    return RotatingFileHandler(
        filename=str(path),
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )
