"""Detection and parsing of embedded catalog source locators (URLs)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final
from urllib.parse import unquote, urlsplit

PLACEHOLDER_IMAGE_URLS: Final[frozenset[str]] = frozenset(
    {"https://imgd.aeplcdn.com/0x0/statics/grey.gif"}
)

_LOCATOR_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"https?://", re.IGNORECASE),
    re.compile(r"www\.", re.IGNORECASE),
    re.compile(r"carwale\.com", re.IGNORECASE),
    re.compile(r"\.(com|in|org|net|io|co)\s*/", re.IGNORECASE),
)
_BRAND_SEGMENT_SUFFIX: Final[str] = "-cars"


@dataclass(frozen=True, slots=True)
class LocatorNaming:
    """Naming values recovered from a locator path."""

    brand: str
    model: str | None = None
    variant: str | None = None


def contains_locator(value: object) -> bool:
    if value is None:
        return False
    text = str(value).strip()
    if not text:
        return False
    return any(pattern.search(text) for pattern in _LOCATOR_PATTERNS)


def _slug_to_name(slug: str) -> str | None:
    words = [word for word in unquote(slug).replace("_", "-").split("-") if word]
    if not words:
        return None
    return " ".join(word[:1].upper() + word[1:] for word in words)


def parse_locator(value: object) -> LocatorNaming | None:
    """Parse ``https://<host>/<brand>-cars/<model>/<variant>/``.

    Returns ``None`` when the value is not a locator or its path carries no brand.
    """

    if not contains_locator(value):
        return None
    text = str(value).strip()
    if "://" not in text:
        text = f"https://{text}"
    segments = [segment for segment in urlsplit(text).path.split("/") if segment]
    for position, segment in enumerate(segments):
        if not segment.lower().endswith(_BRAND_SEGMENT_SUFFIX):
            continue
        brand = _slug_to_name(segment[: -len(_BRAND_SEGMENT_SUFFIX)])
        if brand is None:
            return None
        rest = segments[position + 1 : position + 3]
        model = _slug_to_name(rest[0]) if rest else None
        variant = _slug_to_name(rest[1]) if len(rest) > 1 else None
        return LocatorNaming(brand=brand, model=model, variant=variant)
    return None


def is_placeholder_image(url: str) -> bool:
    return url.strip() in PLACEHOLDER_IMAGE_URLS
