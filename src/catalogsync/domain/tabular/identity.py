"""Identity key derivation for catalog items."""

from __future__ import annotations

import unicodedata
from typing import Final

IDENTITY_SEPARATOR: Final[str] = "|"


def identity_part(value: object) -> str:
    """Case- and punctuation-insensitive form of one naming value."""

    if value is None:
        return ""
    text = unicodedata.normalize("NFKC", str(value)).casefold()
    return "".join(char for char in text if char.isalnum())


def identity_key(brand: object, model: object, variant: object = None) -> str:
    """Derive the identity key from brand, model and variant.

    Returns an empty string when brand or model is empty; such records are
    never reconcilable.

    >>> identity_key("BMW", "3 Series", "320d Luxury Edition")
    'bmw|3series|320dluxuryedition'
    """

    brand_part = identity_part(brand)
    model_part = identity_part(model)
    if not brand_part or not model_part:
        return ""
    return IDENTITY_SEPARATOR.join((brand_part, model_part, identity_part(variant)))
