"""Trip duration calculation.

Turns the four schedule strings collected at intake (pickup date/time, drop
date/time) into a billed duration. All values are local wall-clock times;
no timezone conversion is applied.

Three outcomes are deliberately distinct:

* ``None``: at least one date is still empty, the caller should prompt.
* ``MinimumDurationError``: both dates present but the trip is too short.
* ``Duration``: a billable trip of at least the minimum number of hours.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.exceptions import InvalidScheduleError, MinimumDurationError

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"
MINIMUM_RENTAL_HOURS = 48
HOURS_PER_DAY = 24


@dataclass(frozen=True)
class Duration:
    """Billed trip length, split into whole days plus leftover hours."""

    total_hours: int
    full_days: int
    extra_hours: int

    @classmethod
    def from_hours(cls, total_hours: int) -> "Duration":
        full_days, extra_hours = divmod(total_hours, HOURS_PER_DAY)
        return cls(total_hours=total_hours, full_days=full_days, extra_hours=extra_hours)

    @property
    def label(self) -> str:
        """Human readable form, e.g. ``3 days + 4 hours``."""
        if self.extra_hours:
            return f"{self.full_days} days + {self.extra_hours} hours"
        return f"{self.full_days} days"

    def km_limit(self, km_per_day: int) -> int:
        """Included kilometres for the trip."""
        return self.full_days * km_per_day


def parse_instant(date_value: str, time_value: str, field: str) -> datetime:
    """Combine a ``YYYY-MM-DD`` date and ``HH:MM`` time into a naive datetime."""
    try:
        day = datetime.strptime(date_value, DATE_FORMAT)
    except ValueError:
        raise InvalidScheduleError(f"{field}_date", date_value) from None
    try:
        clock = datetime.strptime(time_value, TIME_FORMAT)
    except ValueError:
        raise InvalidScheduleError(f"{field}_time", time_value) from None
    return day.replace(hour=clock.hour, minute=clock.minute)


def compute_duration(
    pickup_date: str,
    pickup_time: str,
    drop_date: str,
    drop_time: str,
    minimum_hours: int = MINIMUM_RENTAL_HOURS,
) -> Duration | None:
    """
    Compute the billed duration between pickup and drop.

    Args:
        pickup_date: Pickup calendar date (``YYYY-MM-DD``)
        pickup_time: Pickup time of day (``HH:MM``)
        drop_date: Drop calendar date (``YYYY-MM-DD``)
        drop_time: Drop time of day (``HH:MM``)
        minimum_hours: Shortest billable trip

    Returns:
        The duration, or None while either date is still empty

    Raises:
        InvalidScheduleError: If a date or time cannot be parsed
        MinimumDurationError: If the trip is shorter than ``minimum_hours``
    """
    if not pickup_date or not drop_date:
        return None

    pickup = parse_instant(pickup_date, pickup_time, "pickup")
    drop = parse_instant(drop_date, drop_time, "drop")

    # Floor division truncates partial hours, and negative spans stay negative
    total_hours = (drop - pickup) // timedelta(hours=1)

    if total_hours < minimum_hours:
        raise MinimumDurationError(total_hours=total_hours, minimum_hours=minimum_hours)

    return Duration.from_hours(total_hours)
