from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from cellgrid.core.settings import get_user_config_dir


def _default_log_dir() -> Path:
    env_log_dir = os.environ.get("CELLGRID_LOG_DIR")
    if env_log_dir:
        log_dir = Path(env_log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir
    cwd_logs = Path.cwd() / "logs"
    try:
        cwd_logs.mkdir(parents=True, exist_ok=True)
        return cwd_logs
    except OSError:
        fallback = get_user_config_dir() / "logs"
        fallback.mkdir(parents=True, exist_ok=True)
        return fallback


def configure_logging(*, debug: bool = False, log_path: str | None = None) -> None:
    """Configure app-wide logging.

    - Always logs to a rotating file
    - Logs to the console only when debug is enabled (the TUI owns the terminal otherwise)
    """
    level = logging.DEBUG if debug else logging.INFO
    root = logging.getLogger()
    root.setLevel(level)

    # Avoid duplicating handlers if called more than once.
    if getattr(root, "_cellgrid_configured", False):
        return

    if log_path is None:
        log_path = str(_default_log_dir() / "cellgrid.log")

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    if debug:
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(fmt)
        root.addHandler(console)

    root._cellgrid_configured = True  # type: ignore[attr-defined]
