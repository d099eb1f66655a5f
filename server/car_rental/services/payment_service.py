"""Advance payment handoff.

The gateway runs entirely on the client: this service builds the checkout
options, then reacts to the success, failure or cancel callback the client
forwards. Only a flat advance is charged online; the trip price and the
security deposit are settled at pickup.
"""

import logging
import secrets
import string
import time
from urllib.parse import quote

from ..core.config import settings
from ..core.exceptions import ConflictError, PaymentInProgressError, ValidationError
from ..core.observability import metrics_collector
from ..schemas.booking import BookingDraft, BookingStep, DepositType, SessionState
from ..schemas.payment import (
    BalanceDue,
    CheckoutNotes,
    CheckoutPrefill,
    CheckoutSession,
    CheckoutTheme,
    PaymentFailureRequest,
    PaymentFailureResponse,
    PaymentSuccessRequest,
    PaymentSuccessResponse,
)
from . import step_gate
from .booking_store import BookingStateStore
from .duration import Duration
from .notification_service import NotificationDispatcher, booking_job

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_uppercase
BOOKING_ID_PREFIX = "BK"
BOOKING_ID_SUFFIX_LENGTH = 4
GENERIC_FAILURE_MESSAGE = "Payment could not be completed. Please try again or book with us on WhatsApp."


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_booking_id() -> str:
    """``BK`` + base36 millisecond timestamp + 4 random base36 characters."""
    timestamp = to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(BOOKING_ID_SUFFIX_LENGTH))
    return f"{BOOKING_ID_PREFIX}{timestamp}{suffix}"


def deposit_amount(deposit_type: DepositType) -> int:
    """Cash deposits carry the configured amount; a bike with RC costs nothing upfront."""
    if deposit_type == DepositType.CASH:
        return settings.cash_deposit_amount
    return 0


def manual_contact_link(draft: BookingDraft, deposit_type: DepositType) -> str:
    """WhatsApp deep link pre-filled with the booking summary."""
    deposit = (
        f"{settings.currency} {settings.cash_deposit_amount} refundable"
        if deposit_type == DepositType.CASH
        else "Bike with RC"
    )
    message = "\n".join([
        f"Hi, I want to book a car from {settings.business_name}.",
        "",
        f"Car: {draft.car_display_name}",
        f"Estimated price: {settings.currency} {draft.base_price} ({draft.total_days} days)",
        f"KM limit: {draft.total_days * settings.km_limit_per_day}km",
        f"Pickup: {draft.pickup_date} {draft.pickup_time}",
        f"Drop: {draft.drop_date} {draft.drop_time}",
        f"Location: {draft.pickup_location or 'To be decided'}",
        f"Name: {draft.customer_name}",
        f"Phone: {draft.customer_phone}",
        f"Deposit: {deposit}",
    ])
    return f"{settings.manual_contact_url}?text={quote(message)}"


class PaymentService:
    """Drives one session's advance payment."""

    def __init__(self, store: BookingStateStore, notifier: NotificationDispatcher):
        self.store = store
        self.notifier = notifier

    def _ensure_not_confirmed(self) -> None:
        if self.store.is_terminal:
            raise ConflictError(
                detail="This booking is already confirmed",
                conflicting_resource={"booking_id": self.store.read().booking_id},
            )

    def initiate(self) -> CheckoutSession:
        """
        Build the gateway checkout options and mark the payment as pending.

        Raises:
            ConflictError: If the booking is already confirmed
            PaymentInProgressError: If a payment is already pending
            StepGateError: If checkout prerequisites are missing
            ValidationError: If no car has been selected
        """
        self._ensure_not_confirmed()
        if self.store.payment_pending:
            raise PaymentInProgressError(self.store.session_id)

        step_gate.require(BookingStep.CHECKOUT, self.store)

        draft = self.store.read()
        if not draft.car_id:
            raise ValidationError(
                detail="Please select a car before paying.",
                code="CAR_NOT_SELECTED",
            )

        deposit_type = self.store.deposit_choice
        checkout = CheckoutSession(
            key=settings.gateway_key_id,
            amount=settings.advance_amount * 100,
            currency=settings.currency,
            name=settings.business_name,
            description=f"Advance payment for {draft.car_display_name}",
            prefill=CheckoutPrefill(name=draft.customer_name, contact=draft.customer_phone),
            notes=CheckoutNotes(
                pickup_at=draft.pickup_at,
                drop_at=draft.drop_at,
                pickup_location=draft.pickup_location,
                car_name=draft.car_display_name,
                customer_name=draft.customer_name,
                customer_phone=draft.customer_phone,
            ),
            theme=CheckoutTheme(color=settings.gateway_theme_color),
            balance_due=BalanceDue(
                advance_amount=settings.advance_amount,
                trip_total=draft.base_price,
                deposit_amount=deposit_amount(deposit_type),
            ),
            manual_contact_url=manual_contact_link(draft, deposit_type),
        )

        self.store.payment_pending = True
        metrics_collector.record_payment("initiated")
        logger.info(
            "Payment initiated",
            extra={
                "booking_session": self.store.session_id,
                "car_id": draft.car_id,
                "amount_minor": checkout.amount,
                "currency": checkout.currency,
            }
        )
        return checkout

    def on_success(self, result: PaymentSuccessRequest) -> PaymentSuccessResponse:
        """
        Finalize the draft after the gateway reports success.

        Raises:
            ConflictError: If the booking is already confirmed or no payment is pending
        """
        self._ensure_not_confirmed()
        if not self.store.payment_pending:
            raise ConflictError(detail="No payment is in progress for this booking")

        deposit_type = self.store.deposit_choice
        booking_id = generate_booking_id()
        draft = self.store.update(
            booking_id=booking_id,
            deposit_type=deposit_type,
            deposit_amount=deposit_amount(deposit_type),
            total_amount=self.store.read().base_price,
        )
        self.store.payment_pending = False

        metrics_collector.record_payment("succeeded")
        logger.info(
            "Payment succeeded",
            extra={
                "booking_session": self.store.session_id,
                "booking_id": booking_id,
                "payment_id": result.payment_id,
                "order_id": result.order_id,
            }
        )

        duration = Duration.from_hours(draft.total_days * 24 + draft.extra_hours)
        self.notifier.enqueue(booking_job(draft, duration))

        return PaymentSuccessResponse(booking_id=booking_id, session=self.store.snapshot())

    def on_failure(self, result: PaymentFailureRequest) -> PaymentFailureResponse:
        """Keep the draft, allow a retry and surface the gateway's message."""
        self.store.payment_pending = False
        message = (result.error_description or "").strip() or GENERIC_FAILURE_MESSAGE

        metrics_collector.record_payment("failed")
        logger.warning(
            "Payment failed",
            extra={
                "booking_session": self.store.session_id,
                "error_code": result.error_code,
                "payment_id": result.payment_id,
            }
        )
        return PaymentFailureResponse(
            message=message,
            manual_contact_url=manual_contact_link(self.store.read(), self.store.deposit_choice),
            session=self.store.snapshot(),
        )

    def on_cancel(self) -> SessionState:
        """Customer closed the checkout; nothing changes except re-enabling payment."""
        self.store.payment_pending = False
        metrics_collector.record_payment("cancelled")
        logger.info("Payment cancelled", extra={"booking_session": self.store.session_id})
        return self.store.snapshot()
