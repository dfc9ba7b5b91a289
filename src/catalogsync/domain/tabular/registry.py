"""Static column registry: the recognised attributes of a catalog item.

The registry is declared in TOML, validated with pydantic when loaded and then
frozen. Unknown value kinds, duplicate names and clashing positional indexes
are rejected here rather than surfacing while rows are parsed.
"""

from __future__ import annotations

import logging
import tomllib
from functools import cache
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from catalogsync.domain.errors import RegistryError
from catalogsync.domain.model import ColumnDescriptor, ValueKind
from catalogsync.domain.tabular.values import collapse_whitespace

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

log = logging.getLogger(__name__)

DEFAULT_REGISTRY_RESOURCE: Final[str] = "registry.toml"
NAMING_FIELDS: Final[tuple[str, str, str]] = ("brand", "model", "variant")
REQUIRED_FIELDS: Final[tuple[str, ...]] = ("brand", "model")


def normalize_header(header: object) -> str:
    if header is None:
        return ""
    return collapse_whitespace(str(header))


class _ColumnEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    kind: ValueKind
    headers: list[str] = Field(default_factory=list)
    position: int | None = Field(default=None, ge=0)
    required: bool = False

    @field_validator("headers")
    @classmethod
    def _normalize_headers(cls, value: list[str]) -> list[str]:
        return [header for header in (normalize_header(item) for item in value) if header]


class _GroupEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    columns: list[_ColumnEntry]


class _RegistryFile(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    groups: dict[str, _GroupEntry]


class ColumnRegistry:
    """Ordered, immutable collection of column descriptors."""

    def __init__(self, descriptors: Iterable[ColumnDescriptor]) -> None:
        self._descriptors = tuple(descriptors)
        self._by_name: dict[str, ColumnDescriptor] = {}
        self._by_alias: dict[str, list[ColumnDescriptor]] = {}
        positions: dict[int, str] = {}

        for descriptor in self._descriptors:
            name = descriptor.canonical_name
            if name in self._by_name:
                raise RegistryError(f"Duplicate canonical name {name!r}")
            index = descriptor.positional_fallback_index
            if index is not None:
                if index < 0:
                    raise RegistryError(f"Negative positional index for {name!r}")
                if index in positions:
                    raise RegistryError(
                        f"Positional index {index} used by both {positions[index]!r} and {name!r}"
                    )
                positions[index] = name
            self._by_name[name] = descriptor
            for alias in descriptor.header_aliases:
                self._by_alias.setdefault(alias, []).append(descriptor)

        for name in REQUIRED_FIELDS:
            descriptor = self._by_name.get(name)
            if descriptor is None:
                raise RegistryError(f"Registry must declare a {name!r} column")
            if not descriptor.required:
                raise RegistryError(f"Registry column {name!r} must be required")

    def __iter__(self) -> Iterator[ColumnDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> ColumnDescriptor | None:
        return self._by_name.get(name)

    def __getitem__(self, name: str) -> ColumnDescriptor:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Unknown canonical field {name!r}") from None

    @property
    def declaration_order(self) -> tuple[str, ...]:
        return tuple(descriptor.canonical_name for descriptor in self._descriptors)

    @property
    def required(self) -> tuple[ColumnDescriptor, ...]:
        return tuple(descriptor for descriptor in self._descriptors if descriptor.required)

    @property
    def positional(self) -> tuple[ColumnDescriptor, ...]:
        with_index = [d for d in self._descriptors if d.positional_fallback_index is not None]
        return tuple(sorted(with_index, key=lambda d: d.positional_fallback_index or 0))

    def candidates_for_header(self, header: object) -> tuple[ColumnDescriptor, ...]:
        """Descriptors listing ``header`` as an alias, in declaration order."""

        return tuple(self._by_alias.get(normalize_header(header), ()))

    def is_alias_of(self, text: object, name: str) -> bool:
        descriptor = self._by_name.get(name)
        if descriptor is None:
            return False
        return normalize_header(text) in descriptor.header_aliases


def registry_from_mapping(payload: dict[str, object]) -> ColumnRegistry:
    try:
        parsed = _RegistryFile.model_validate(payload)
    except PydanticValidationError as exc:
        raise RegistryError(f"Invalid column registry: {exc}") from exc

    descriptors: list[ColumnDescriptor] = []
    for group_name, group in parsed.groups.items():
        descriptors.extend(
            ColumnDescriptor(
                canonical_name=entry.name,
                header_aliases=frozenset(entry.headers),
                value_kind=entry.kind,
                positional_fallback_index=entry.position,
                required=entry.required,
                group=group_name,
                display_header=entry.headers[0] if entry.headers else None,
            )
            for entry in group.columns
        )
    return ColumnRegistry(descriptors)


def parse_registry(text: str) -> ColumnRegistry:
    try:
        payload = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise RegistryError(f"Column registry is not valid TOML: {exc}") from exc
    return registry_from_mapping(payload)


@cache
def default_registry() -> ColumnRegistry:
    text = (
        resources.files("catalogsync.domain.tabular")
        .joinpath(DEFAULT_REGISTRY_RESOURCE)
        .read_text(encoding="utf-8")
    )
    registry = parse_registry(text)
    log.debug("Loaded default column registry with %d descriptors", len(registry))
    return registry


def load_registry(path: str | Path | None = None) -> ColumnRegistry:
    """Load a registry from ``path``, or the packaged default (cached) when omitted."""

    if path is None:
        return default_registry()
    registry_path = Path(path)
    try:
        text = registry_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RegistryError(f"Cannot read column registry {registry_path}: {exc}") from exc
    registry = parse_registry(text)
    log.info("Loaded column registry %s with %d descriptors", registry_path, len(registry))
    return registry
