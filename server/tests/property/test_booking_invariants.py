"""Property-based tests for pricing and booking draft invariants."""

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from car_rental.core.exceptions import MinimumDurationError, ValidationError
from car_rental.schemas.booking import BookingDraft
from car_rental.services.booking_store import BookingStateStore
from car_rental.services.duration import compute_duration
from car_rental.services.pricing import hours_price, price, select_rate

# Strategies for generating test data
rates = st.integers(min_value=500, max_value=20000)
optional_rates = st.one_of(st.none(), rates)
day_counts = st.integers(min_value=0, max_value=60)
extra_hours = st.integers(min_value=0, max_value=23)
spans = st.integers(min_value=0, max_value=60 * 24 * 60)
starts = st.datetimes(min_value=datetime(2024, 1, 1), max_value=datetime(2030, 12, 31))

draft_updates = st.fixed_dictionaries(
    {},
    optional={
        "customer_name": st.text(alphabet="abcdefghij ", max_size=12),
        "customer_phone": st.text(alphabet="0123456789", max_size=10),
        "pickup_location": st.sampled_from(["", "Hebbal", "Kengeri"]),
        "total_days": day_counts,
        "extra_hours": extra_hours,
        "base_price": st.integers(min_value=0, max_value=10**6),
    },
)


def fmt(moment: datetime) -> tuple[str, str]:
    return moment.strftime("%Y-%m-%d"), moment.strftime("%H:%M")


@given(start=starts, minutes=spans)
def test_duration_split_is_consistent(start, minutes):
    """Whole days and leftover hours always add back up to the truncated span."""
    pickup_date, pickup_time = fmt(start)
    drop_date, drop_time = fmt(start + timedelta(minutes=minutes))

    try:
        duration = compute_duration(pickup_date, pickup_time, drop_date, drop_time)
    except MinimumDurationError:
        # Minutes are truncated once both sides are rounded to the minute
        assert minutes < 49 * 60
        return

    assert duration.total_hours >= 48
    assert duration.full_days * 24 + duration.extra_hours == duration.total_hours
    assert 0 <= duration.extra_hours < 24
    assert duration.full_days >= 2


@given(per_day=rates, p3=optional_rates, p7=optional_rates, p15=optional_rates, days=day_counts)
def test_selected_rate_comes_from_the_car(per_day, p3, p7, p15, days):
    car = SimpleNamespace(price=per_day, price_3_days=p3, price_7_days=p7, price_15_days=p15)

    selection = select_rate(car, days)

    assert selection.per_day_rate in {per_day, p3, p7, p15}
    if selection.tier != "base":
        assert getattr(car, f"price_{selection.tier}") == selection.per_day_rate


@given(per_day=rates, days=day_counts, hours=extra_hours)
def test_flat_rate_price_is_monotonic(per_day, days, hours):
    """Without tiers, one more hour or one more day never costs less."""
    car = SimpleNamespace(price=per_day, price_3_days=None, price_7_days=None, price_15_days=None)

    total = price(car, days, hours)

    assert total >= days * per_day
    assert price(car, days + 1, hours) >= total
    if hours < 23:
        assert price(car, days, hours + 1) >= total


@given(per_day=rates, hours=extra_hours)
def test_partial_day_never_exceeds_a_full_day(per_day, hours):
    assert 0 <= hours_price(per_day, hours) <= per_day


@given(p3=rates, days=st.integers(min_value=3, max_value=60))
def test_cheaper_tier_is_used_from_three_days(p3, days):
    base = p3 + 100
    car = SimpleNamespace(price=base, price_3_days=p3, price_7_days=None, price_15_days=None)

    assert price(car, days, 0) == days * p3


@settings(suppress_health_check=[HealthCheck.too_slow], deadline=None)
@given(updates=st.lists(draft_updates, max_size=4))
def test_update_merge_matches_dictionary_merge(updates):
    """The draft equals the initial state with every update applied in order."""
    store = BookingStateStore("property")
    expected = BookingDraft().model_dump()

    for partial in updates:
        store.update(**partial)
        expected.update(partial)

    assert store.read().model_dump() == expected


@settings(suppress_health_check=[HealthCheck.too_slow], deadline=None)
@given(updates=st.lists(draft_updates, min_size=1, max_size=4), terms=st.booleans())
def test_reset_always_restores_initial_state(updates, terms):
    store = BookingStateStore("property")
    for partial in updates:
        store.update(**partial)
    store.terms_accepted = terms

    store.reset()

    assert store.read() == BookingDraft()
    assert store.terms_accepted is False


@given(field=st.text(min_size=1, max_size=20))
def test_unknown_fields_never_change_the_draft(field):
    assume(field not in BookingDraft.model_fields)
    store = BookingStateStore("property")

    with pytest.raises(ValidationError):
        store.update(**{field: "value"})

    assert store.read() == BookingDraft()


@given(start=starts, minutes=st.integers(min_value=48 * 60, max_value=60 * 24 * 60))
def test_duration_is_repeatable(start, minutes):
    pickup_date, pickup_time = fmt(start)
    drop_date, drop_time = fmt(start + timedelta(minutes=minutes))

    first = compute_duration(pickup_date, pickup_time, drop_date, drop_time)
    second = compute_duration(pickup_date, pickup_time, drop_date, drop_time)

    assert first == second


@given(
    tier_rates=st.lists(rates, min_size=4, max_size=4).map(lambda r: sorted(r, reverse=True)),
    days=st.integers(min_value=0, max_value=59),
)
def test_day_rate_never_rises_with_longer_trips(tier_rates, days):
    """With every tier defined and cheaper tiers for longer trips, the rate is non-increasing."""
    base, p3, p7, p15 = tier_rates
    car = SimpleNamespace(price=base, price_3_days=p3, price_7_days=p7, price_15_days=p15)

    assert select_rate(car, days + 1).per_day_rate <= select_rate(car, days).per_day_rate
