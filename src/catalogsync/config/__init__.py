"""Application configuration helpers."""

from __future__ import annotations

from .errors import SettingsError
from .importing import ImportSettings, get_import_settings
from .logging import configure_logging
from .storage import catalog_data_dir, get_database_uri

__all__ = [
    "ImportSettings",
    "SettingsError",
    "catalog_data_dir",
    "configure_logging",
    "get_database_uri",
    "get_import_settings",
]
