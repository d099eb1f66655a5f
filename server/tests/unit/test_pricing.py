"""Unit tests for tiered pricing."""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from car_rental.services.duration import Duration
from car_rental.services.pricing import BASE_TIER, breakdown, hours_price, price, quote, select_rate


def car(price=2500, price_3_days=None, price_7_days=None, price_15_days=None):
    return SimpleNamespace(
        price=price,
        price_3_days=price_3_days,
        price_7_days=price_7_days,
        price_15_days=price_15_days,
    )


ALL_TIERS = car(2500, 2200, 2000, 1800)


def test_two_day_trip_uses_base_rate():
    assert price(car(2500), 2, 0) == 5000


def test_three_days_four_hours_uses_three_day_rate():
    """3 x 2200 + round(4 x 2200 / 24) = 6600 + 367."""
    assert price(car(2500, price_3_days=2200), 3, 4) == 6967


@pytest.mark.parametrize(
    "full_days,expected_tier,expected_rate",
    [
        (2, BASE_TIER, 2500),
        (3, "3_days", 2200),
        (7, "3_days", 2200),
        (8, "7_days", 2000),
        (15, "7_days", 2000),
        (16, "15_days", 1800),
        (40, "15_days", 1800),
    ],
)
def test_tier_boundaries(full_days, expected_tier, expected_rate):
    selection = select_rate(ALL_TIERS, full_days)
    assert selection.tier == expected_tier
    assert selection.per_day_rate == expected_rate


def test_undefined_tier_falls_through():
    only_three_day = car(3000, price_3_days=2800)

    assert select_rate(only_three_day, 20).tier == "3_days"
    assert select_rate(car(3000), 20).per_day_rate == 3000
    assert select_rate(car(3000, price_7_days=2600), 5).tier == BASE_TIER


def test_half_hour_rounds_up():
    """2501 x 12 / 24 = 1250.5 rounds to 1251."""
    assert hours_price(2501, 12) == 1251
    assert hours_price(2500, 1) == 104


def test_zero_days_is_safe():
    assert price(car(2400), 0, 0) == 0
    assert price(car(2400), 0, 12) == 1200


def test_breakdown_items_add_up():
    result = breakdown(ALL_TIERS, 9, 5)

    assert result.tier == "7_days"
    assert result.days_price == 18000
    assert result.hours_price == 417
    assert result.total_price == result.days_price + result.hours_price
    assert result.hourly_rate == Decimal(2000) / 24


def test_quote_uses_duration_split():
    result = quote(ALL_TIERS, Duration.from_hours(76))

    assert result.full_days == 3
    assert result.extra_hours == 4
    assert result.total_price == 6967
