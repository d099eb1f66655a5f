"""Tiered per-day pricing.

A car always has a base day rate and may define cheaper long-trip rates.
Tiers are checked from the highest threshold down; a tier only applies when
the car defines its rate, otherwise evaluation falls through to the next one
and finally to the base rate.

The partial day is billed pro rata at ``rate / 24`` per hour and rounded half
up to a whole currency unit. Whole days are never rounded.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from ..core.observability import metrics_collector
from .duration import HOURS_PER_DAY, Duration


class PricedCar(Protocol):
    """Anything carrying the four rate fields (ORM row or schema)."""

    price: int
    price_3_days: int | None
    price_7_days: int | None
    price_15_days: int | None


@dataclass(frozen=True)
class TierRule:
    """Use ``rate_field`` as the day rate once a trip reaches ``min_days``."""

    name: str
    min_days: int
    rate_field: str


BASE_TIER = "base"

# Highest threshold first
TIER_RULES: tuple[TierRule, ...] = (
    TierRule(name="15_days", min_days=16, rate_field="price_15_days"),
    TierRule(name="7_days", min_days=8, rate_field="price_7_days"),
    TierRule(name="3_days", min_days=3, rate_field="price_3_days"),
)


@dataclass(frozen=True)
class TierSelection:
    tier: str
    per_day_rate: int


@dataclass(frozen=True)
class PriceBreakdown:
    """Itemised trip price used by the quote endpoint."""

    tier: str
    per_day_rate: int
    hourly_rate: Decimal
    full_days: int
    extra_hours: int
    days_price: int
    hours_price: int
    total_price: int


def select_rate(car: PricedCar, full_days: int) -> TierSelection:
    """Pick the per-day rate for a trip of ``full_days`` whole days."""
    for rule in TIER_RULES:
        rate = getattr(car, rule.rate_field, None)
        if full_days >= rule.min_days and rate is not None:
            return TierSelection(tier=rule.name, per_day_rate=rate)
    return TierSelection(tier=BASE_TIER, per_day_rate=car.price)


def hours_price(per_day_rate: int, extra_hours: int) -> int:
    """Pro-rata charge for the leftover hours, rounded half up."""
    # Multiply before dividing so exact halves stay exact
    raw = Decimal(per_day_rate * extra_hours) / HOURS_PER_DAY
    return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def breakdown(car: PricedCar, full_days: int, extra_hours: int) -> PriceBreakdown:
    """Itemise the price of a trip."""
    selection = select_rate(car, full_days)
    days_price = full_days * selection.per_day_rate
    partial = hours_price(selection.per_day_rate, extra_hours)

    metrics_collector.record_quote(selection.tier)

    return PriceBreakdown(
        tier=selection.tier,
        per_day_rate=selection.per_day_rate,
        hourly_rate=Decimal(selection.per_day_rate) / HOURS_PER_DAY,
        full_days=full_days,
        extra_hours=extra_hours,
        days_price=days_price,
        hours_price=partial,
        total_price=days_price + partial,
    )


def price(car: PricedCar, full_days: int, extra_hours: int) -> int:
    """Total trip price for ``full_days`` whole days plus ``extra_hours``."""
    return breakdown(car, full_days, extra_hours).total_price


def quote(car: PricedCar, duration: Duration) -> PriceBreakdown:
    """Itemised price for a computed duration."""
    return breakdown(car, duration.full_days, duration.extra_hours)
