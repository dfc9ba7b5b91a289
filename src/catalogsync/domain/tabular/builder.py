"""Record builder: one raw row plus a column map into a candidate record."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from catalogsync.domain.model import CandidateRecord
from catalogsync.domain.tabular.identity import identity_key
from catalogsync.domain.tabular.locators import contains_locator, is_placeholder_image
from catalogsync.domain.tabular.registry import NAMING_FIELDS, default_registry
from catalogsync.domain.tabular.values import parse

if TYPE_CHECKING:
    from collections.abc import Mapping

    from catalogsync.domain.model import CellValue, ColumnMap, FieldValue, RawRow
    from catalogsync.domain.tabular.locators import LocatorNaming
    from catalogsync.domain.tabular.registry import ColumnRegistry

log = logging.getLogger(__name__)

FEATURE_LABELS: Final[dict[str, str]] = {
    "air_conditioner": "Air Conditioner",
    "central_locking": "Central Locking",
    "power_windows": "Power Windows",
    "antilock_braking_system_abs": "Anti-Lock Braking System (ABS)",
    "airbags": "Airbags",
    "parking_sensors": "Parking Sensors",
    "cruise_control": "Cruise Control",
    "gps_navigation_system": "GPS Navigation System",
    "bluetooth_compatibility": "Bluetooth Compatibility",
    "usb_compatibility": "USB Compatibility",
    "automatic_emergency_braking_aeb": "Automatic Emergency Braking (AEB)",
    "lane_departure_warning": "Lane Departure Warning",
    "tyre_pressure_monitoring_system_tpms": "Tyre Pressure Monitoring System (TPMS)",
}

# specification key -> canonical fields, first present value wins
SPECIFICATION_SOURCES: Final[dict[str, tuple[str, ...]]] = {
    "engine": ("engine", "key_engine"),
    "transmission": ("key_transmission",),
    "fuel_type": ("key_fuel_type",),
    "mileage": ("key_mileage_arai",),
    "body_type": ("body_style",),
    "drivetrain": ("drivetrain",),
}

IMAGE_SEPARATOR: Final[str] = ";"


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_present(value: FieldValue) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, int | float) and value > 0


def _image_list(raw: FieldValue) -> list[str]:
    if not isinstance(raw, str):
        return []
    images: list[str] = []
    for part in raw.split(IMAGE_SEPARATOR):
        url = part.strip()
        if url and not is_placeholder_image(url) and url not in images:
            images.append(url)
    return images


def derive_fields(fields: Mapping[str, FieldValue]) -> dict[str, FieldValue]:
    """Compute derived fields from a complete set of canonical fields."""

    derived: dict[str, FieldValue] = {}

    price = fields.get("price")
    if _is_number(price):
        derived["price_min"] = price
        derived["price_max"] = price
    ex_showroom = fields.get("ex_showroom_price")
    if _is_number(ex_showroom):
        derived["price_min"] = ex_showroom

    images = _image_list(fields.get("image_url"))
    if images:
        derived["images"] = images

    features = [label for name, label in FEATURE_LABELS.items() if _is_present(fields.get(name))]
    if features:
        derived["features"] = features

    specifications: dict[str, CellValue] = {}
    for key, sources in SPECIFICATION_SOURCES.items():
        value = next((fields[name] for name in sources if fields.get(name) is not None), None)
        if value is not None and not isinstance(value, list | dict):
            specifications[key] = value
    if specifications:
        derived["specifications"] = specifications

    return derived


def _overflow_key(column_map: ColumnMap, cell_index: int, offset: int, used: set[str]) -> str:
    header = column_map.header_at(cell_index - offset)
    key = header if header and header not in used else f"column_{cell_index}"
    used.add(key)
    return key


def _overflow_value(raw: CellValue) -> CellValue:
    if isinstance(raw, str):
        return raw.strip() or None
    return raw


def build(
    row: RawRow,
    column_map: ColumnMap,
    *,
    offset: int = 0,
    locator: LocatorNaming | None = None,
    registry: ColumnRegistry | None = None,
) -> CandidateRecord:
    """Build a candidate record from ``row``.

    ``offset`` shifts every mapped column for this row only. Naming fields left
    empty (or holding a locator) are filled from ``locator`` when given.
    """

    registry = registry or default_registry()
    parsed: dict[str, FieldValue] = {}
    consumed: set[int] = set()

    for index, descriptor in column_map:
        if descriptor is None:
            continue
        cell_index = index + offset
        if cell_index < 0:
            continue
        consumed.add(cell_index)
        result = parse(
            row.cell(cell_index),
            descriptor.value_kind,
            field=descriptor.canonical_name,
            row=row.row_number,
        )
        if result.value is not None:
            parsed[descriptor.canonical_name] = result.value

    if locator is not None:
        for name in NAMING_FIELDS:
            current = parsed.get(name)
            replacement = getattr(locator, name)
            if (current is None or contains_locator(current)) and replacement:
                parsed[name] = replacement

    canonical = {name: parsed[name] for name in registry.declaration_order if name in parsed}

    overflow: dict[str, CellValue] = {}
    used_keys: set[str] = set()
    for cell_index, raw in enumerate(row.cells):
        if cell_index in consumed:
            continue
        value = _overflow_value(raw)
        if value is None or value == "":
            continue
        overflow[_overflow_key(column_map, cell_index, offset, used_keys)] = value

    key = identity_key(canonical.get("brand"), canonical.get("model"), canonical.get("variant"))
    if not key:
        log.debug(
            "Row %d is unidentifiable (brand=%r, model=%r)",
            row.row_number,
            canonical.get("brand"),
            canonical.get("model"),
        )

    return CandidateRecord(
        identity_key=key,
        canonical_fields=canonical,
        derived_fields=derive_fields(canonical),
        overflow_fields=overflow,
        source_row=row.row_number,
        column_offset=offset,
    )
