"""Booking flow step handlers.

Every handler receives the session's ``BookingStateStore`` explicitly and
validates its input completely before writing anything, so a rejected
request leaves the draft exactly as it was.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import ConflictError, PaymentInProgressError, ValidationError
from ..models.car import Car
from ..schemas.booking import (
    BookingStep,
    ConfirmationResponse,
    DepositRequest,
    DurationInfo,
    IntakeRequest,
    IntakeResponse,
    SelectCarRequest,
    SessionState,
    TermsRequest,
    UpdateCustomerRequest,
    UpdateTripRequest,
)
from . import pricing, step_gate
from .booking_store import BookingStateStore
from .duration import Duration, compute_duration
from .fleet_service import FleetService, parse_car_id
from .notification_service import NotificationDispatcher, availability_job

logger = logging.getLogger(__name__)

MISSING_DETAILS = "Please enter name and phone number."
MISSING_DATES = "Please select pickup and drop dates."


def duration_info(duration: Duration) -> DurationInfo:
    return DurationInfo(
        total_hours=duration.total_hours,
        full_days=duration.full_days,
        extra_hours=duration.extra_hours,
        label=duration.label,
    )


def draft_duration(store: BookingStateStore) -> Optional[Duration]:
    """Re-derive the duration from the draft's schedule; None until dates are set."""
    draft = store.read()
    if not draft.total_days:
        return None
    return compute_duration(
        draft.pickup_date,
        draft.pickup_time,
        draft.drop_date,
        draft.drop_time,
        minimum_hours=settings.minimum_rental_hours,
    )


def share_text(store: BookingStateStore) -> str:
    draft = store.read()
    return "\n".join([
        "Booking Confirmed!",
        "",
        f"Booking ID: {draft.booking_id}",
        f"Car: {draft.car_display_name}",
        f"Pickup: {draft.pickup_date} {draft.pickup_time}",
        f"Drop: {draft.drop_date} {draft.drop_time}",
        "",
        settings.business_name,
    ])


def _required_duration(pickup_date: str, pickup_time: str, drop_date: str, drop_time: str) -> Duration:
    duration = compute_duration(
        pickup_date,
        pickup_time,
        drop_date,
        drop_time,
        minimum_hours=settings.minimum_rental_hours,
    )
    if duration is None:
        raise ValidationError(detail=MISSING_DATES, code="MISSING_DATES")
    return duration


def _validate_location(location: str) -> str:
    location = location.strip()
    if location and location not in settings.pickup_locations:
        raise ValidationError(
            detail=f"Unknown pickup location: {location}",
            errors={"pickup_location": location, "allowed": settings.pickup_locations},
            code="INVALID_LOCATION",
        )
    return location


def _validate_customer(name: str, phone: str) -> tuple[str, str]:
    if not name or not phone.strip():
        raise ValidationError(detail=MISSING_DETAILS, code="MISSING_DETAILS")
    return name, step_gate.validate_phone(phone)


class BookingFlowService:
    """Step handlers for one booking session."""

    def __init__(
        self,
        db: AsyncSession,
        store: BookingStateStore,
        notifier: Optional[NotificationDispatcher] = None,
    ):
        self.db = db
        self.store = store
        self.notifier = notifier
        self.fleet = FleetService(db)

    def _ensure_editable(self) -> None:
        if self.store.is_terminal:
            raise ConflictError(
                detail="This booking is already confirmed. Start a new booking to make changes.",
                conflicting_resource={"booking_id": self.store.read().booking_id},
            )
        if self.store.payment_pending:
            raise PaymentInProgressError(self.store.session_id)

    async def _selected_car(self) -> Optional[Car]:
        car_id = self.store.read().car_id
        if not car_id:
            return None
        car = await self.fleet.get_car(parse_car_id(car_id))
        if car is None:
            # Removed from the fleet after it was chosen; the customer picks again
            logger.warning(
                "Selected car no longer exists, clearing selection",
                extra={"booking_session": self.store.session_id, "car_id": car_id},
            )
            self.store.update(
                car_id="", car_name="", car_brand="", car_image="", base_price=0, total_amount=0
            )
        return car

    def _price_fields(self, car: Optional[Car], duration: Duration) -> dict:
        if car is None:
            return {}
        total = pricing.price(car, duration.full_days, duration.extra_hours)
        return {"base_price": total, "total_amount": total}

    async def submit_intake(self, request: IntakeRequest) -> IntakeResponse:
        """
        Leave the intake step: customer details plus the trip schedule.

        Queues the availability notification once everything is valid; the
        response never waits on it.

        Raises:
            ValidationError: If details are missing or the location is unknown
            PhoneValidationError: If the phone is not exactly 10 digits
            MinimumDurationError: If the trip is shorter than the minimum
        """
        self._ensure_editable()

        name, phone = _validate_customer(request.customer_name, request.customer_phone)
        duration = _required_duration(
            request.pickup_date, request.pickup_time, request.drop_date, request.drop_time
        )
        location = _validate_location(request.pickup_location)
        car = await self._selected_car()

        draft = self.store.update(
            customer_name=name,
            customer_phone=phone,
            pickup_date=request.pickup_date,
            pickup_time=request.pickup_time,
            drop_date=request.drop_date,
            drop_time=request.drop_time,
            pickup_location=location,
            total_days=duration.full_days,
            extra_hours=duration.extra_hours,
            **self._price_fields(car, duration),
        )

        logger.info(
            "Booking intake submitted",
            extra={
                "booking_session": self.store.session_id,
                "total_hours": duration.total_hours,
                "transmission": request.transmission.value,
            }
        )

        if self.notifier is not None:
            self.notifier.enqueue(availability_job(draft, duration, request.transmission.value))

        return IntakeResponse(
            session=self.store.snapshot(),
            duration=duration_info(duration),
            next_step=BookingStep.TERMS,
        )

    async def select_car(self, request: SelectCarRequest) -> SessionState:
        """
        Record the car picked from the availability list and price the trip.

        Raises:
            StepGateError: If intake has not been completed
            NotFoundError: If the car does not exist
            ConflictError: If the car is not currently offered
        """
        self._ensure_editable()
        step_gate.require(BookingStep.TERMS, self.store)

        duration = draft_duration(self.store)
        if duration is None:
            raise ValidationError(detail=MISSING_DATES, code="MISSING_DATES")

        car = await self.fleet.get_car_or_raise(request.car_id)
        if not car.is_available:
            raise ConflictError(
                detail=f"{car.display_name} is not available for booking",
                conflicting_resource={"car_id": str(car.id)},
            )

        self.store.update(
            car_id=str(car.id),
            car_name=car.name,
            car_brand=car.brand,
            car_image=car.image or "",
            **self._price_fields(car, duration),
        )

        logger.info(
            "Car selected",
            extra={"booking_session": self.store.session_id, "car_id": str(car.id)}
        )
        return self.store.snapshot()

    def accept_terms(self, request: TermsRequest) -> SessionState:
        """
        Set the terms flag.

        Raises:
            StepGateError: If intake has not been completed
        """
        self._ensure_editable()
        step_gate.require(BookingStep.TERMS, self.store)
        self.store.terms_accepted = request.accepted
        return self.store.snapshot()

    def update_customer(self, request: UpdateCustomerRequest) -> SessionState:
        """Edit name and phone from the checkout page."""
        self._ensure_editable()
        step_gate.require(BookingStep.CHECKOUT, self.store)

        name, phone = _validate_customer(request.customer_name, request.customer_phone)
        self.store.update(customer_name=name, customer_phone=phone)
        return self.store.snapshot()

    async def update_trip(self, request: UpdateTripRequest) -> SessionState:
        """
        Edit the schedule from the checkout page and re-price the selected car.

        Raises:
            MinimumDurationError: If the new schedule is too short; the draft
                keeps its previous schedule
        """
        self._ensure_editable()
        step_gate.require(BookingStep.CHECKOUT, self.store)

        duration = _required_duration(
            request.pickup_date, request.pickup_time, request.drop_date, request.drop_time
        )
        car = await self._selected_car()

        self.store.update(
            pickup_date=request.pickup_date,
            pickup_time=request.pickup_time,
            drop_date=request.drop_date,
            drop_time=request.drop_time,
            total_days=duration.full_days,
            extra_hours=duration.extra_hours,
            **self._price_fields(car, duration),
        )
        return self.store.snapshot()

    def choose_deposit(self, request: DepositRequest) -> SessionState:
        """Pick the security deposit; it is written to the draft when payment succeeds."""
        self._ensure_editable()
        step_gate.require(BookingStep.CHECKOUT, self.store)
        self.store.deposit_choice = request.deposit_type
        return self.store.snapshot()

    def confirmation(self) -> ConfirmationResponse:
        """
        Data for the confirmation page.

        Raises:
            StepGateError: If no booking has been confirmed yet
        """
        step_gate.require(BookingStep.CONFIRMATION, self.store)
        draft = self.store.read()
        duration = Duration.from_hours(draft.total_days * 24 + draft.extra_hours)
        return ConfirmationResponse(
            booking_id=draft.booking_id,
            draft=draft,
            duration_label=duration.label,
            share_text=share_text(self.store),
        )

    def reset(self) -> SessionState:
        self.store.reset()
        return self.store.snapshot()
