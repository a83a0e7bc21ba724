from __future__ import annotations

import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from floating_visibility.config import FloatingConfig

ROOT_LOGGER_NAME = "FloatingVisibility"
LOG_FILENAME = "floating-visibility.log"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def resolve_logs_dir(base_path: Path, log_dir_name: str = "FloatingVisibility") -> Path:
    """
    Resolve the directory to store logs.

    Strategy:
    - Use FLOATING_VISIBILITY_LOG_DIR if set.
    - Fall back to XDG state/cache locations, then `base_path/logs/<log_dir_name>`.
    - Final fallback: tempdir/<log_dir_name>.
    """
    candidates = []

    env_override = os.environ.get("FLOATING_VISIBILITY_LOG_DIR")
    if env_override:
        candidates.append(Path(env_override).expanduser())

    state_home = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
    cache_home = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    candidates.append(state_home)
    candidates.append(cache_home)
    candidates.append(base_path / "logs")

    for base in candidates:
        try:
            target = base / log_dir_name
            target.mkdir(parents=True, exist_ok=True)
            return target
        except OSError:
            continue

    temp_fallback = Path(tempfile.gettempdir()) / log_dir_name
    temp_fallback.mkdir(parents=True, exist_ok=True)
    return temp_fallback


def build_rotating_file_handler(
    log_dir: Path,
    filename: str,
    *,
    retention: int = 5,
    max_bytes: int = 512 * 1024,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Handler:
    """Construct a rotating file handler with sane defaults."""
    retention = max(1, retention)
    backup_count = max(0, retention - 1)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


def resolve_log_level(debug_enabled: bool) -> int:
    return logging.DEBUG if debug_enabled else logging.INFO


def configure_logging(config: FloatingConfig, *, base_path: Optional[Path] = None) -> logging.Logger:
    """Attach a rotating file handler to the FloatingVisibility logger tree.

    Calling this again replaces the handler installed by the previous call.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(resolve_log_level(config.debug))
    logger.propagate = config.propagate_logs

    log_dir = config.log_dir or resolve_logs_dir(base_path or Path.cwd())
    handler = build_rotating_file_handler(
        log_dir,
        LOG_FILENAME,
        retention=config.logs_to_keep,
        formatter=logging.Formatter(LOG_FORMAT),
    )
    for existing in list(logger.handlers):
        if getattr(existing, "_floating_visibility_handler", False):
            logger.removeHandler(existing)
            existing.close()
    handler._floating_visibility_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
