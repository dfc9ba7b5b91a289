"""Environment-driven import settings."""

from __future__ import annotations

from catalogsync.domain.model.settings import (
    DEFAULT_CHUNK_PAUSE_SECONDS,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LOOKBACK_ROWS,
    DEFAULT_MAX_WORKERS,
    ImportSettings,
)

from .env import env_float, env_int
from .errors import SettingsError


def get_import_settings() -> ImportSettings:
    """Build import settings from ``CATALOGSYNC_*`` environment variables."""

    pause = env_float("CATALOGSYNC_CHUNK_PAUSE_SECONDS", DEFAULT_CHUNK_PAUSE_SECONDS)
    try:
        return ImportSettings(
            chunk_size=env_int("CATALOGSYNC_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
            inter_chunk_pause_seconds=DEFAULT_CHUNK_PAUSE_SECONDS if pause is None else pause,
            max_workers=env_int("CATALOGSYNC_MAX_WORKERS", DEFAULT_MAX_WORKERS),
            deadline_seconds=env_float("CATALOGSYNC_DEADLINE_SECONDS", None),
            lookback_rows=env_int("CATALOGSYNC_LOOKBACK_ROWS", DEFAULT_LOOKBACK_ROWS),
        )
    except ValueError as exc:
        raise SettingsError(str(exc)) from exc
