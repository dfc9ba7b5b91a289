"""Location of the catalog database."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

DATA_DIR_ENV: Final[str] = "CATALOGSYNC_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DEFAULT_DB_FILENAME: Final[str] = "catalog.db"


def catalog_data_dir() -> Path:
    """``CATALOGSYNC_DATA_DIR`` if set, else ``catalogsync`` under the XDG data home."""

    override = os.getenv(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser().resolve()
    xdg_home = os.getenv("XDG_DATA_HOME")
    base = Path(xdg_home) if xdg_home else Path.home() / ".local" / "share"
    return (base / "catalogsync").expanduser().resolve()


def catalog_database_path(*, create_dir: bool = True) -> Path:
    data_dir = catalog_data_dir()
    if create_dir:
        data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / DEFAULT_DB_FILENAME


def get_database_uri() -> str:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the catalog data dir."""

    override = os.getenv(DATABASE_URI_ENV)
    if override:
        return override
    return f"sqlite+pysqlite:///{catalog_database_path()}"
