"""Blank import sheet derived from the column registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from catalogsync.domain.tabular.registry import default_registry

if TYPE_CHECKING:
    from catalogsync.domain.model import CellValue
    from catalogsync.domain.tabular.registry import ColumnRegistry

SAMPLE_ROW: Final[dict[str, CellValue]] = {
    "version_id": 1,
    "brand": "BMW",
    "model": "3 Series",
    "variant": "320d Luxury Edition",
    "body_style": "Sedan",
    "status_notes": "Active",
    "price": "₹ 50.88 Lakh",
    "key_mileage_arai": "20.3 kmpl",
    "key_engine": "1995 cc",
    "key_transmission": "Automatic (TC)",
    "key_fuel_type": "Diesel",
    "key_seating_capacity": 5,
    "length": 4709,
    "width": 1827,
    "height": 1435,
    "airbags": 6,
    "antilock_braking_system_abs": "Yes",
    "air_conditioner": "Yes",
    "power_windows": "Yes",
    "central_locking": "Yes",
}


@dataclass(frozen=True, slots=True)
class ImportTemplate:
    headers: tuple[str, ...]
    sample_row: tuple[CellValue, ...]


def import_template(registry: ColumnRegistry | None = None) -> ImportTemplate:
    """Header row (first listed header of each column, declaration order) plus a sample row.

    Re-importing the template resolves every column it lists, including
    repeated headers such as ``Engine``.
    """

    registry = registry or default_registry()
    columns = [descriptor for descriptor in registry if descriptor.display_header]
    return ImportTemplate(
        headers=tuple(descriptor.display_header or "" for descriptor in columns),
        sample_row=tuple(SAMPLE_ROW.get(descriptor.canonical_name, "") for descriptor in columns),
    )
