"""dictConfig-based logging setup for zonerank and its host application."""
from __future__ import annotations

from logging.config import dictConfig
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from zonerank.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_FILE_NAME = "zonerank.log"

_configured = False


def build_logging_config(
    log_dir: Path,
    level: str,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> dict[str, Any]:
    """
    Build the dictConfig mapping.

    Console and a size-rotated file both receive ``level``; the package
    logger follows the same level so host applications can quieten the
    root logger without losing engine warnings.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": str(log_dir / LOG_FILE_NAME),
                "maxBytes": max_bytes,
                "backupCount": backup_count,
                "encoding": "utf-8",
                "formatter": "standard",
                "level": level,
            },
        },
        "loggers": {
            "zonerank": {"level": level},
        },
        "root": {
            "level": level,
            "handlers": ["console", "file"],
        },
    }


def configure_logging(
    level: str | None = None,
    log_dir: Path | None = None,
    force: bool = False,
) -> None:
    """
    Configure logging once per process.

    Args:
        level: Override for ``Settings.log_level``
        log_dir: Override for ``Settings.log_dir``
        force: Reapply even if logging was already configured
    """
    global _configured
    if _configured and not force:
        return

    try:
        settings = get_settings()
        level = level or settings.log_level
        log_dir = log_dir or settings.log_dir
        max_bytes = settings.log_max_bytes
        backup_count = settings.log_backup_count
    except ValidationError:
        # Bad LOG_* environment values fall back to INFO in ./logs
        level = level or "INFO"
        log_dir = log_dir or Path("logs")
        max_bytes = 5 * 1024 * 1024
        backup_count = 3

    log_dir.mkdir(parents=True, exist_ok=True)
    dictConfig(build_logging_config(log_dir, level.upper(), max_bytes, backup_count))
    _configured = True
