from __future__ import annotations

import pytest

from catalogsync.domain.tabular import LocatorNaming, contains_locator, parse_locator


@pytest.mark.parametrize(
    "value",
    [
        "https://www.carwale.com/kia-cars/seltos/",
        "www.example.org/path",
        "carwale.com/tata-cars/nexon",
        "example.in /foo",
    ],
)
def test_contains_locator(value: str) -> None:
    assert contains_locator(value)


@pytest.mark.parametrize("value", [None, "", "Kia", "Seltos 1.5 HTX", 1497])
def test_contains_locator_rejects_plain_values(value: object) -> None:
    assert not contains_locator(value)


def test_parse_locator_reads_brand_model_and_variant_slugs() -> None:
    naming = parse_locator("https://www.carwale.com/maruti-suzuki-cars/swift/vxi-amt/")

    assert naming == LocatorNaming(brand="Maruti Suzuki", model="Swift", variant="Vxi Amt")


def test_parse_locator_without_scheme_and_variant() -> None:
    naming = parse_locator("www.carwale.com/kia-cars/seltos")

    assert naming == LocatorNaming(brand="Kia", model="Seltos", variant=None)


def test_parse_locator_without_brand_segment() -> None:
    assert parse_locator("https://www.carwale.com/news/") is None
    assert parse_locator("Kia") is None
