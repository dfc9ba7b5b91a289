"""Column descriptors and resolved column maps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogsync.domain.model.enums import ColumnSource, ValueKind

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True, slots=True, kw_only=True)
class ColumnDescriptor:
    """One recognised attribute of a catalog item."""

    canonical_name: str
    header_aliases: frozenset[str]
    value_kind: ValueKind
    positional_fallback_index: int | None = None
    required: bool = False
    group: str = "general"
    display_header: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ColumnMap:
    """Column index to descriptor binding for one sheet.

    Indexes bound to ``None`` are present in the sheet but unrecognised; their
    cells end up in the overflow bag.
    """

    bindings: dict[int, ColumnDescriptor | None]
    headers: tuple[str, ...] = ()
    source: ColumnSource = ColumnSource.HEADER
    _by_name: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_name = {
            descriptor.canonical_name: index
            for index, descriptor in self.bindings.items()
            if descriptor is not None
        }
        object.__setattr__(self, "_by_name", by_name)

    def __iter__(self) -> Iterator[tuple[int, ColumnDescriptor | None]]:
        return iter(self.bindings.items())

    def __len__(self) -> int:
        return len(self.bindings)

    def index_of(self, canonical_name: str) -> int | None:
        return self._by_name.get(canonical_name)

    def resolved_names(self) -> frozenset[str]:
        return frozenset(self._by_name)

    def header_at(self, index: int) -> str | None:
        if 0 <= index < len(self.headers):
            header = self.headers[index]
            return header or None
        return None
