"""Unit tests for the duration calculator."""

import pytest

from car_rental.core.exceptions import InvalidScheduleError, MinimumDurationError
from car_rental.services.duration import Duration, compute_duration


def test_exactly_two_days():
    duration = compute_duration("2024-06-01", "10:00", "2024-06-03", "10:00")

    assert duration == Duration(total_hours=48, full_days=2, extra_hours=0)
    assert duration.label == "2 days"


def test_days_plus_hours():
    duration = compute_duration("2024-06-01", "10:00", "2024-06-04", "14:00")

    assert duration.total_hours == 76
    assert duration.full_days == 3
    assert duration.extra_hours == 4
    assert duration.label == "3 days + 4 hours"


def test_partial_hours_are_truncated():
    """47h59m is 47 hours, which is below the minimum."""
    with pytest.raises(MinimumDurationError):
        compute_duration("2024-06-01", "10:00", "2024-06-03", "09:59")

    duration = compute_duration("2024-06-01", "10:00", "2024-06-03", "10:59")
    assert duration.total_hours == 48


def test_forty_hours_is_rejected_with_message():
    with pytest.raises(MinimumDurationError) as exc_info:
        compute_duration("2024-06-01", "10:00", "2024-06-03", "02:00")

    assert exc_info.value.message == "Minimum rental period is 2 days (48 hours)."
    assert exc_info.value.status_code == 400
    assert exc_info.value.problem_details["errors"]["total_hours"] == 40


def test_drop_before_pickup_is_rejected():
    with pytest.raises(MinimumDurationError):
        compute_duration("2024-06-05", "10:00", "2024-06-01", "10:00")


@pytest.mark.parametrize(
    "pickup_date,drop_date",
    [("", "2024-06-03"), ("2024-06-01", ""), ("", "")],
)
def test_missing_date_means_no_result_yet(pickup_date, drop_date):
    assert compute_duration(pickup_date, "10:00", drop_date, "10:00") is None


def test_unparseable_input():
    with pytest.raises(InvalidScheduleError) as exc_info:
        compute_duration("2024-13-01", "10:00", "2024-06-03", "10:00")
    assert exc_info.value.problem_details["errors"]["field"] == "pickup_date"

    with pytest.raises(InvalidScheduleError) as exc_info:
        compute_duration("2024-06-01", "10:00", "2024-06-03", "25:00")
    assert exc_info.value.problem_details["errors"]["field"] == "drop_time"


def test_custom_minimum():
    duration = compute_duration("2024-06-01", "10:00", "2024-06-02", "10:00", minimum_hours=24)
    assert duration.full_days == 1


def test_km_limit():
    assert Duration.from_hours(76).km_limit(300) == 900
