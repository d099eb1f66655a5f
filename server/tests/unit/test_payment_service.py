"""Unit tests for the advance payment handoff."""

import re
from urllib.parse import unquote

import pytest

from car_rental.core.exceptions import ConflictError, PaymentInProgressError, StepGateError, ValidationError
from car_rental.schemas.booking import DepositType
from car_rental.schemas.payment import PaymentFailureRequest, PaymentSuccessRequest
from car_rental.services.booking_store import BookingStateStore
from car_rental.services.notification_service import EmailClient, NotificationDispatcher
from car_rental.services.payment_service import (
    GENERIC_FAILURE_MESSAGE,
    PaymentService,
    deposit_amount,
    generate_booking_id,
    manual_contact_link,
    to_base36,
)


@pytest.fixture
def store():
    """A session that has reached checkout with a car selected."""
    store = BookingStateStore("session-1")
    store.update(
        customer_name="Asha Rao",
        customer_phone="9845012345",
        pickup_date="2024-06-01",
        pickup_time="10:00",
        drop_date="2024-06-04",
        drop_time="14:00",
        pickup_location="Hebbal",
        car_id="6f1c2a8e-0000-4000-8000-000000000001",
        car_name="Swift",
        car_brand="Maruti Suzuki",
        total_days=3,
        extra_hours=4,
        base_price=6967,
        total_amount=6967,
    )
    store.terms_accepted = True
    return store


@pytest.fixture
def notifier():
    """Dispatcher that is never drained; queued jobs are only counted."""
    return NotificationDispatcher(EmailClient(api_key=""), maxsize=10)


@pytest.fixture
def service(store, notifier):
    return PaymentService(store, notifier)


def test_to_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "Z"
    assert to_base36(36) == "10"


def test_booking_id_format():
    booking_id = generate_booking_id()
    assert re.fullmatch(r"BK[0-9A-Z]+", booking_id)
    assert generate_booking_id() != booking_id


def test_deposit_amount():
    assert deposit_amount(DepositType.CASH) == 10000
    assert deposit_amount(DepositType.BIKE) == 0


def test_manual_contact_link(store):
    link = manual_contact_link(store.read(), DepositType.BIKE)

    assert link.startswith("https://wa.me/")
    text = unquote(link.split("?text=", 1)[1])
    assert "Car: Maruti Suzuki Swift" in text
    assert "Deposit: Bike with RC" in text
    assert "KM limit: 900km" in text


class TestInitiate:
    """Test building the checkout."""

    def test_checkout_options(self, service, store):
        checkout = service.initiate()

        assert checkout.amount == 100000
        assert checkout.currency == "INR"
        assert checkout.prefill.name == "Asha Rao"
        assert checkout.prefill.contact == "9845012345"
        assert checkout.notes.pickup_at == "2024-06-01T10:00"
        assert checkout.notes.car_name == "Maruti Suzuki Swift"
        assert checkout.balance_due.trip_total == 6967
        assert checkout.balance_due.deposit_amount == 10000
        assert store.payment_pending is True

    def test_second_initiation_is_rejected(self, service):
        service.initiate()

        with pytest.raises(PaymentInProgressError) as exc_info:
            service.initiate()
        assert exc_info.value.status_code == 409

    def test_requires_terms(self, service, store):
        store.terms_accepted = False

        with pytest.raises(StepGateError) as exc_info:
            service.initiate()

        assert exc_info.value.problem_details["redirect_to"] == "terms"
        assert store.payment_pending is False

    def test_requires_car(self, service, store):
        store.update(car_id="")

        with pytest.raises(ValidationError) as exc_info:
            service.initiate()
        assert exc_info.value.problem_details["code"] == "CAR_NOT_SELECTED"


class TestCallbacks:
    """Test gateway outcomes."""

    def test_success_finalizes_draft(self, service, store, notifier):
        store.deposit_choice = DepositType.BIKE
        service.initiate()

        result = service.on_success(PaymentSuccessRequest(payment_id="pay_123", order_id="order_1"))

        draft = store.read()
        assert re.fullmatch(r"BK[0-9A-Z]+", result.booking_id)
        assert draft.booking_id == result.booking_id
        assert draft.deposit_type == DepositType.BIKE
        assert draft.deposit_amount == 0
        assert draft.total_amount == 6967
        assert store.payment_pending is False
        assert result.next_step == "confirmation"
        assert notifier.queue.qsize() == 1

    def test_success_without_pending_payment(self, service):
        with pytest.raises(ConflictError):
            service.on_success(PaymentSuccessRequest(payment_id="pay_123"))

    def test_no_payment_after_confirmation(self, service):
        service.initiate()
        service.on_success(PaymentSuccessRequest(payment_id="pay_123"))

        with pytest.raises(ConflictError):
            service.initiate()
        with pytest.raises(ConflictError):
            service.on_success(PaymentSuccessRequest(payment_id="pay_456"))

    def test_failure_shows_gateway_message(self, service, store):
        service.initiate()

        result = service.on_failure(PaymentFailureRequest(
            error_code="BAD_REQUEST_ERROR",
            error_description="Your card was declined",
        ))

        assert result.message == "Your card was declined"
        assert result.manual_contact_url.startswith("https://wa.me/")
        assert store.payment_pending is False
        assert store.read().booking_id is None

    def test_failure_without_description(self, service):
        service.initiate()
        result = service.on_failure(PaymentFailureRequest(error_description="  "))
        assert result.message == GENERIC_FAILURE_MESSAGE

    def test_retry_after_failure(self, service):
        service.initiate()
        service.on_failure(PaymentFailureRequest())

        assert service.initiate().amount == 100000

    def test_cancel_keeps_draft(self, service, store):
        before = store.read()
        service.initiate()

        state = service.on_cancel()

        assert state.payment_pending is False
        assert state.draft == before
