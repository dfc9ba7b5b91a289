"""Tabular layer: turning spreadsheet rows into typed candidate records."""

from __future__ import annotations

from catalogsync.domain.tabular.builder import build, derive_fields
from catalogsync.domain.tabular.identity import identity_key, identity_part
from catalogsync.domain.tabular.locators import LocatorNaming, contains_locator, parse_locator
from catalogsync.domain.tabular.registry import (
    ColumnRegistry,
    default_registry,
    load_registry,
    parse_registry,
)
from catalogsync.domain.tabular.resolver import OffsetDetection, detect_offset, resolve
from catalogsync.domain.tabular.rows import IgnoredRow, classify_row
from catalogsync.domain.tabular.template import ImportTemplate, import_template
from catalogsync.domain.tabular.values import ParsedValue, parse

__all__ = [
    "ColumnRegistry",
    "IgnoredRow",
    "ImportTemplate",
    "LocatorNaming",
    "OffsetDetection",
    "ParsedValue",
    "build",
    "classify_row",
    "contains_locator",
    "default_registry",
    "derive_fields",
    "detect_offset",
    "identity_key",
    "identity_part",
    "import_template",
    "load_registry",
    "parse",
    "parse_locator",
    "parse_registry",
    "resolve",
]
