"""Cell value parsers.

``parse`` never raises: malformed input degrades to an absent/unknown value
with ``ok=False`` and a warning naming the field and source row.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Final

from catalogsync.domain.errors import ParseError
from catalogsync.domain.model import CellValue, ValueKind

log = logging.getLogger(__name__)

TRUE_TOKENS: Final[frozenset[str]] = frozenset(
    {"yes", "y", "true", "1", "available", "present", "✓", "✔"}
)
FALSE_TOKENS: Final[frozenset[str]] = frozenset(
    {"no", "n", "false", "0", "not available", "absent", "✗", "✖"}
)
UNKNOWN_TOKENS: Final[frozenset[str]] = frozenset({"", "-", "na"})

_MULTIPLIERS: Final[dict[str, int]] = {
    "lakh": 100_000,
    "lakhs": 100_000,
    "lac": 100_000,
    "lacs": 100_000,
    "crore": 10_000_000,
    "crores": 10_000_000,
    "cr": 10_000_000,
}
_MULTIPLIER_RE = re.compile(r"\b(" + "|".join(sorted(_MULTIPLIERS, key=len, reverse=True)) + r")\b")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_SEPARATORS_RE = re.compile(r"(?<=\d)[,_'\u00a0\u2009](?=\d)")
_WHITESPACE_RE = re.compile(r"\s+")

type ParsedScalar = int | float | bool | str | None


@dataclass(frozen=True, slots=True)
class ParsedValue:
    value: ParsedScalar
    ok: bool = True


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value).strip()


def cell_text(raw: CellValue) -> str:
    """Render a raw cell as trimmed text ('' for empty cells)."""

    if raw is None:
        return ""
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return collapse_whitespace(str(raw))


def _normalise_number(number: Decimal) -> int | float:
    if number == number.to_integral_value():
        return int(number)
    return float(number)


def parse_numeric(raw: CellValue) -> int | float | None:
    """Extract the leading number, applying Lakh/Crore multipliers.

    Returns ``None`` for empty cells; raises ``ParseError`` when no number is found.
    """

    if isinstance(raw, bool):
        raise ParseError("boolean where a number was expected", raw_value=raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if math.isnan(raw):
            return None
        if math.isinf(raw):
            raise ParseError("infinite number", raw_value=raw)
        return _normalise_number(Decimal(str(raw)))

    text = cell_text(raw)
    if text.casefold() in UNKNOWN_TOKENS:
        return None

    cleaned = _SEPARATORS_RE.sub("", text)
    match = _NUMBER_RE.search(cleaned)
    if match is None:
        raise ParseError(f"no numeric value in {text!r}", raw_value=raw)
    try:
        number = Decimal(match.group(0))
    except InvalidOperation as exc:  # pragma: no cover - regex guarantees a decimal literal
        raise ParseError(f"invalid number {match.group(0)!r}", raw_value=raw) from exc

    multiplier = _MULTIPLIER_RE.search(cleaned.casefold())
    if multiplier is not None:
        number *= _MULTIPLIERS[multiplier.group(1)]
    return _normalise_number(number)


def parse_tristate(raw: CellValue) -> bool | None:
    """Map a free-text flag to True/False, or None when unknown.

    Raises ``ParseError`` for unrecognised tokens.
    """

    if isinstance(raw, bool):
        return raw
    if isinstance(raw, float) and math.isnan(raw):
        return None
    token = cell_text(raw).casefold()
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    if token in UNKNOWN_TOKENS:
        return None
    raise ParseError(f"unrecognised flag {token!r}", raw_value=raw)


def parse_text(raw: CellValue) -> str | None:
    if isinstance(raw, float) and math.isnan(raw):
        return None
    text = cell_text(raw)
    return text or None


def parse(
    raw: CellValue,
    kind: ValueKind,
    *,
    field: str | None = None,
    row: int | None = None,
) -> ParsedValue:
    """Convert a raw cell into a typed value for ``kind``."""

    try:
        match kind:
            case ValueKind.NUMERIC:
                return ParsedValue(parse_numeric(raw))
            case ValueKind.TRISTATE:
                return ParsedValue(parse_tristate(raw))
            case ValueKind.TEXT:
                return ParsedValue(parse_text(raw))
    except ParseError as exc:
        log.warning(
            "Could not parse %s value for field %r at row %s: %s",
            kind.value,
            field,
            row,
            exc,
        )
        return ParsedValue(None, ok=False)
    raise ValueError(f"Unsupported value kind: {kind!r}")
