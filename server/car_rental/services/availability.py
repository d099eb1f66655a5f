"""Filtering, pricing and sorting of fleet listings."""

from typing import Iterable, Optional, Sequence

from ..core.observability import metrics_collector
from ..models.car import Car, Transmission
from ..schemas.car import CarWithPrice, SortOption, TransmissionFilter
from . import pricing
from .duration import Duration


def matches_transmission(car_transmission: str, wanted: TransmissionFilter) -> bool:
    """A car offering both gearboxes passes either specific filter."""
    if wanted == TransmissionFilter.ALL:
        return True
    return car_transmission in (wanted.value, Transmission.BOTH.value)


def annotate(car: Car, duration: Duration, km_per_day: int) -> CarWithPrice:
    """Attach the trip price and duration split to a car."""
    selection = pricing.breakdown(car, duration.full_days, duration.extra_hours)
    return CarWithPrice.model_validate({
        **_car_fields(car),
        "total_price": selection.total_price,
        "full_days": duration.full_days,
        "extra_hours": duration.extra_hours,
        "tier": selection.tier,
        "trip_km_limit": duration.km_limit(km_per_day),
    })


def list_available(
    cars: Sequence[Car],
    duration: Duration,
    transmission: TransmissionFilter = TransmissionFilter.ALL,
    km_per_day: int = 300,
) -> list[CarWithPrice]:
    """
    Keep cars matching ``transmission`` and price each one for ``duration``.

    Input order is preserved; the fleet query already sorts by base price.
    An empty result is a valid answer.
    """
    metrics_collector.record_availability_query(transmission.value)
    return [
        annotate(car, duration, km_per_day)
        for car in cars
        if matches_transmission(car.transmission, transmission)
    ]


def _car_fields(car: Car) -> dict:
    return {
        "id": str(car.id),
        "name": car.name,
        "brand": car.brand,
        "category": car.category,
        "category_label": car.category_label,
        "transmission": car.transmission,
        "fuel": car.fuel,
        "image": car.image,
        "images": list(car.images or []),
        "price": car.price,
        "price_3_days": car.price_3_days,
        "price_7_days": car.price_7_days,
        "price_15_days": car.price_15_days,
        "km_limit": car.km_limit,
        "extra_km_charge": car.extra_km_charge,
        "is_available": car.is_available,
    }


def _matches_search(car: Car, term: str) -> bool:
    haystack = (car.name, car.brand, car.category_label or "")
    return any(term in value.lower() for value in haystack)


_SORT_KEYS = {
    SortOption.PRICE_ASC: (lambda car: car.price, False),
    SortOption.PRICE_DESC: (lambda car: car.price, True),
    SortOption.NAME_ASC: (lambda car: car.name.lower(), False),
    SortOption.NAME_DESC: (lambda car: car.name.lower(), True),
}


def browse(
    cars: Iterable[Car],
    search: str = "",
    category: Optional[str] = None,
    fuel: Optional[str] = None,
    transmission: TransmissionFilter = TransmissionFilter.ALL,
    sort: SortOption = SortOption.PRICE_ASC,
) -> list[Car]:
    """Catalog view: hide unavailable cars, then search, filter and sort."""
    term = search.strip().lower()
    selected = [
        car for car in cars
        if car.is_available
        and (not term or _matches_search(car, term))
        and (category is None or car.category == category)
        and (fuel is None or car.fuel == fuel)
        and matches_transmission(car.transmission, transmission)
    ]
    key, reverse = _SORT_KEYS[sort]
    return sorted(selected, key=key, reverse=reverse)


def brands(cars: Iterable[Car]) -> list[str]:
    """Distinct brands, alphabetically."""
    return sorted({car.brand for car in cars})
