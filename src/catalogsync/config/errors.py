"""Settings error definitions."""

from __future__ import annotations


class SettingsError(RuntimeError):
    """Raised when an environment setting holds an invalid value."""
