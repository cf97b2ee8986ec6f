"""Logging initialization utilities using loguru."""

from __future__ import annotations

import os
from pathlib import Path
import sys

from loguru import logger


def get_app_data_directory() -> Path:
    """Per-user application data directory."""
    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(base) / "GeoSnap"
    base = os.environ.get("XDG_STATE_HOME") or str(Path.home() / ".local" / "state")
    return Path(base) / "geosnap"


def get_log_directory() -> str:
    """Get the main log directory path."""
    return str(get_app_data_directory() / "logs")


def init_logging(log_dir: str | None = None, *, console: bool = False, level: str = "INFO") -> None:
    """Initialize rotating file logging under the given directory.

    With `console=True` warnings and errors are also written to stderr.
    """
    if log_dir is None:
        log_dir = get_log_directory()
    log_path = Path(os.path.expandvars(os.path.expanduser(log_dir)))
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        str(log_path / "app_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
    )
    if console:
        logger.add(sys.stderr, level="WARNING", backtrace=False, diagnose=False)


def find_latest_log_file(log_dir: str | None = None) -> Path | None:
    """Most recently modified `app_*.log` in `log_dir`, or None."""
    log_path = Path(log_dir or get_log_directory())
    try:
        candidates = [p for p in log_path.glob("app_*.log") if p.is_file()]
        return max(candidates, key=lambda p: p.stat().st_mtime, default=None)
    except OSError:
        return None
