"""Batch validator for candidate records (strict mode)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from catalogsync.domain.errors import ValidationError
from catalogsync.domain.model import InvalidRecord, RecordWarning, ValidationReport
from catalogsync.domain.tabular.locators import contains_locator
from catalogsync.domain.tabular.registry import NAMING_FIELDS, REQUIRED_FIELDS

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from catalogsync.domain.model import CandidateRecord, FieldValue

log = logging.getLogger(__name__)

PLACEHOLDER_NAMES: Final[frozenset[str]] = frozenset(
    {
        "1",
        "292",
        "Basic",
        "Source URL",
        "naming-source_url",
        "naming-make",
        "naming-model",
        "naming-version",
        "Make",
        "Model",
        "Version",
        "Variant",
    }
)
RANGE_PAIRS: Final[tuple[tuple[str, str], ...]] = (("price_min", "price_max"),)
WARRANTY_YEAR_FIELDS: Final[tuple[str, ...]] = ("warranty_in_years", "battery_warranty_in_years")
WARRANTY_YEAR_LIMITS: Final[tuple[int, int]] = (0, 50)
PRICE_WARNING_LIMITS: Final[tuple[int, int]] = (100_000, 100_000_000)

type Rule = Callable[[CandidateRecord], list[str]]


def _value(record: CandidateRecord, name: str) -> FieldValue:
    if name in record.canonical_fields:
        return record.canonical_fields[name]
    return record.derived_fields.get(name)


def _number(value: FieldValue) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)


def _text(value: FieldValue) -> str:
    return "" if value is None else str(value).strip()


def required_fields(record: CandidateRecord) -> list[str]:
    return [f"{name} is required" for name in REQUIRED_FIELDS if not _text(_value(record, name))]


def naming_values(record: CandidateRecord) -> list[str]:
    reasons: list[str] = []
    for name in NAMING_FIELDS:
        text = _text(_value(record, name))
        if not text:
            continue
        if contains_locator(text):
            reasons.append(f"{name} contains a URL: {text!r}")
        elif text in PLACEHOLDER_NAMES:
            reasons.append(f"{name} is a placeholder value: {text!r}")
    brand = _text(_value(record, "brand"))
    if brand.isdigit():
        reasons.append(f"brand cannot be only numbers: {brand!r}")
    return reasons


def numeric_ranges(record: CandidateRecord) -> list[str]:
    reasons: list[str] = []
    for low_name, high_name in RANGE_PAIRS:
        low = _number(_value(record, low_name))
        high = _number(_value(record, high_name))
        if low is not None and high is not None and low > high:
            reasons.append(f"{low_name} ({low:g}) exceeds {high_name} ({high:g})")
    return reasons


def warranty_years(record: CandidateRecord) -> list[str]:
    lower, upper = WARRANTY_YEAR_LIMITS
    reasons: list[str] = []
    for name in WARRANTY_YEAR_FIELDS:
        years = _number(_value(record, name))
        if years is not None and not lower <= years <= upper:
            reasons.append(f"{name} must be between {lower} and {upper}, got {years:g}")
    return reasons


DEFAULT_RULES: Final[tuple[Rule, ...]] = (
    required_fields,
    naming_values,
    numeric_ranges,
    warranty_years,
)


def price_warnings(record: CandidateRecord) -> list[str]:
    price = _number(_value(record, "price"))
    if price is None:
        return []
    lower, upper = PRICE_WARNING_LIMITS
    if price < lower:
        return [f"price {price:g} is unusually low"]
    if price > upper:
        return [f"price {price:g} is unusually high"]
    return []


def validate(
    records: Iterable[CandidateRecord],
    *,
    rules: Iterable[Rule] = DEFAULT_RULES,
) -> ValidationReport:
    """Split ``records`` into valid, invalid and in-batch duplicates.

    Duplicates are reported against the second and later occurrence of an
    identity key. Price warnings never make a record invalid.
    """

    active_rules = tuple(rules)
    valid: list[CandidateRecord] = []
    invalid: list[InvalidRecord] = []
    duplicates: list[CandidateRecord] = []
    warnings: list[RecordWarning] = []
    seen: set[str] = set()

    for record in records:
        reasons = [reason for rule in active_rules for reason in rule(record)]
        warnings.extend(RecordWarning(record=record, message=m) for m in price_warnings(record))
        key = record.identity_key
        if reasons:
            invalid.append(InvalidRecord(record=record, reasons=tuple(reasons)))
        elif key in seen:
            duplicates.append(record)
        else:
            valid.append(record)
        if key:
            seen.add(key)

    report = ValidationReport(
        valid=tuple(valid),
        invalid=tuple(invalid),
        duplicates=tuple(duplicates),
        warnings=tuple(warnings),
    )
    log.info(
        "Validated %d record(s): %d valid, %d invalid, %d duplicate, %d warning(s)",
        len(valid) + len(invalid) + len(duplicates),
        len(valid),
        len(invalid),
        len(duplicates),
        len(warnings),
    )
    return report


def ensure_valid(report: ValidationReport) -> None:
    """Raise ``ValidationError`` when ``report`` has invalid or duplicate records."""

    if not report.ok:
        raise ValidationError(report)
