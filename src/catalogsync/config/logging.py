"""Logging setup for the command line."""

from __future__ import annotations

import logging
import os
from typing import Final

from .errors import SettingsError

LOG_LEVEL_ENV: Final[str] = "CATALOGSYNC_LOG_LEVEL"
LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def log_level_from_env(default: int = logging.INFO) -> int:
    raw = os.getenv(LOG_LEVEL_ENV)
    if raw is None or not raw.strip():
        return default
    level = logging.getLevelNamesMapping().get(raw.strip().upper())
    if level is None:
        raise SettingsError(f"{LOG_LEVEL_ENV} must be a logging level name, got {raw!r}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Configure the root logger for an import run.

    ``level`` defaults to ``CATALOGSYNC_LOG_LEVEL`` (INFO when unset). The
    ``sqlalchemy.engine`` logger is held at WARNING or quieter.
    """

    effective = log_level_from_env() if level is None else level
    logging.basicConfig(level=effective, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    logging.getLogger("sqlalchemy.engine").setLevel(max(effective, logging.WARNING))
