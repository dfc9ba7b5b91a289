"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ValueKind(StrEnum):
    NUMERIC = "numeric"
    TRISTATE = "tristate"
    TEXT = "text"


class OutcomeAction(StrEnum):
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"


class ImportMode(StrEnum):
    """``strict`` validates the batch first; ``force`` sends every candidate through."""

    STRICT = "strict"
    FORCE = "force"


class ColumnSource(StrEnum):
    """How a column map was established."""

    HEADER = "header"
    POSITIONAL = "positional"
