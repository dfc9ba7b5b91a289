"""Error taxonomy for catalog imports."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from catalogsync.domain.model import ValidationReport


class CatalogImportError(Exception):
    """Base class for all import failures."""


class ConfigurationError(CatalogImportError):
    """A sheet cannot be processed at all, e.g. a required column is unresolvable."""


class RegistryError(ConfigurationError):
    """The column registry definition is invalid."""


class ParseError(CatalogImportError):
    """A single cell could not be coerced to its declared kind."""

    def __init__(self, message: str, *, raw_value: object = None) -> None:
        super().__init__(message)
        self.raw_value = raw_value


class ValidationError(CatalogImportError):
    """A batch failed strict validation."""

    def __init__(self, report: ValidationReport) -> None:
        super().__init__(
            f"{len(report.invalid)} invalid and {len(report.duplicates)} duplicate record(s)"
        )
        self.report = report


class StoreError(CatalogImportError):
    """A record store call failed."""

    def __init__(self, message: str, *, identity_key: str | None = None) -> None:
        super().__init__(message)
        self.identity_key = identity_key


class StoreTimeoutError(StoreError):
    """A record store call did not complete in time."""
