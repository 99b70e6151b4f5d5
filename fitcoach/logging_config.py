"""Process-wide logging setup."""
from __future__ import annotations

from logging.config import dictConfig
from pathlib import Path

from .settings import get_settings

_configured = False


def _default_config(log_dir: Path, level: str) -> dict:
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": fmt},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
            "file": {
                "class": "logging.FileHandler",
                "filename": str(log_dir / "fitcoach.log"),
                "encoding": "utf-8",
                "formatter": "standard",
                "level": level,
            },
        },
        "root": {
            "level": level,
            "handlers": ["console", "file"],
        },
    }


def configure_logging() -> None:
    """Configure logging once per process."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    dictConfig(_default_config(settings.log_dir, settings.log_level))
    _configured = True
