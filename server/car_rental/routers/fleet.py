"""Fleet router for availability, catalog browsing and price quotes."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.dependencies import get_booking_store, get_db
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.car import (
    AvailabilityRequest,
    AvailabilityResponse,
    Car,
    CatalogRequest,
    CatalogResponse,
    LocationsResponse,
    QuoteRequest,
    QuoteResponse,
)
from ..schemas.common import problem_responses
from ..services import availability, pricing
from ..services.booking_flow import draft_duration
from ..services.booking_store import BookingStateStore
from ..services.duration import compute_duration
from ..services.fleet_service import FleetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/fleet", tags=["fleet"])

DB_DEPENDENCY = Depends(get_db)
STORE_DEPENDENCY = Depends(get_booking_store)


@router.post("/availability", response_model=AvailabilityResponse, responses=problem_responses(404, 503))
async def list_availability(
    request: AvailabilityRequest,
    store: BookingStateStore = STORE_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Cars for the session's trip, priced for its duration.

    Reports ``awaiting_dates`` until intake has produced a duration; an empty
    ``cars`` list with status ``ready`` means nothing matches the filter.
    """
    duration = draft_duration(store)
    if duration is None:
        response_data = AvailabilityResponse(status="awaiting_dates", transmission=request.transmission)
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    try:
        cars = await FleetService(db).list_cars(available_only=True)
        listed = availability.list_available(
            cars,
            duration,
            request.transmission,
            km_per_day=settings.km_limit_per_day,
        )
    except ProblemDetailsException:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error listing availability",
            extra={"booking_session": store.session_id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e

    logger.info(
        "Availability listed",
        extra={
            "booking_session": store.session_id,
            "transmission": request.transmission.value,
            "cars": len(listed),
        }
    )

    response_data = AvailabilityResponse(
        status="ready",
        transmission=request.transmission,
        full_days=duration.full_days,
        extra_hours=duration.extra_hours,
        cars=listed,
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/catalog", response_model=CatalogResponse, responses=problem_responses(503))
async def browse_catalog(
    request: CatalogRequest,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Full fleet with search, filters and sorting; no booking session needed."""
    cars = await FleetService(db).list_cars(available_only=True)
    selected = availability.browse(
        cars,
        search=request.search,
        category=request.category,
        fuel=request.fuel.value if request.fuel else None,
        transmission=request.transmission,
        sort=request.sort,
    )

    response_data = CatalogResponse(
        cars=[Car.model_validate(car) for car in selected],
        total=len(selected),
        brands=availability.brands(cars),
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/quote", response_model=QuoteResponse, responses=problem_responses(400, 404))
async def quote_price(
    request: QuoteRequest,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Stand-alone price calculator for one car and schedule."""
    car = await FleetService(db).get_car_or_raise(request.car_id)
    duration = compute_duration(
        request.pickup_date,
        request.pickup_time,
        request.drop_date,
        request.drop_time,
        minimum_hours=settings.minimum_rental_hours,
    )
    breakdown = pricing.quote(car, duration)

    response_data = QuoteResponse(
        car=Car.model_validate(car),
        total_hours=duration.total_hours,
        full_days=breakdown.full_days,
        extra_hours=breakdown.extra_hours,
        tier=breakdown.tier,
        per_day_rate=breakdown.per_day_rate,
        hourly_rate=round(float(breakdown.hourly_rate), 2),
        days_price=breakdown.days_price,
        hours_price=breakdown.hours_price,
        total_price=breakdown.total_price,
        km_limit=duration.km_limit(settings.km_limit_per_day),
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/locations", response_model=LocationsResponse)
async def list_locations() -> JSONResponse:
    """Pickup hubs offered at intake."""
    response_data = LocationsResponse(locations=settings.pickup_locations)
    return JSONResponse(status_code=200, content=response_data.model_dump())
