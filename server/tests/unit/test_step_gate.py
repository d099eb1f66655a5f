"""Unit tests for booking step guards."""

import pytest

from car_rental.core.exceptions import PhoneValidationError, StepGateError
from car_rental.schemas.booking import BookingDraft, BookingStep
from car_rental.services.booking_store import BookingStateStore
from car_rental.services.step_gate import enter, guard, normalize_phone, require, validate_phone

EMPTY = BookingDraft()
INTAKE_DONE = BookingDraft(customer_name="Asha Rao", pickup_date="2024-06-01")
NAME_ONLY = BookingDraft(customer_name="Asha Rao")
CONFIRMED = BookingDraft(customer_name="Asha Rao", pickup_date="2024-06-01", booking_id="BKTEST0001")


@pytest.mark.parametrize(
    "step,draft,terms_accepted,expected",
    [
        (BookingStep.INTAKE, EMPTY, False, BookingStep.INTAKE),
        (BookingStep.INTAKE, CONFIRMED, True, BookingStep.INTAKE),
        (BookingStep.TERMS, EMPTY, False, BookingStep.INTAKE),
        (BookingStep.TERMS, NAME_ONLY, False, BookingStep.INTAKE),
        (BookingStep.TERMS, INTAKE_DONE, False, BookingStep.TERMS),
        (BookingStep.CHECKOUT, EMPTY, True, BookingStep.INTAKE),
        (BookingStep.CHECKOUT, INTAKE_DONE, False, BookingStep.TERMS),
        (BookingStep.CHECKOUT, INTAKE_DONE, True, BookingStep.CHECKOUT),
        (BookingStep.CONFIRMATION, INTAKE_DONE, True, BookingStep.INTAKE),
        (BookingStep.CONFIRMATION, CONFIRMED, False, BookingStep.CONFIRMATION),
    ],
)
def test_guard(step, draft, terms_accepted, expected):
    assert guard(step, draft, terms_accepted) == expected


def test_guard_does_not_modify_draft():
    draft = INTAKE_DONE.model_copy()
    guard(BookingStep.CHECKOUT, draft, False)
    assert draft == INTAKE_DONE


class TestEnter:
    """Test step decisions against a live store."""

    def test_allowed_step(self):
        store = BookingStateStore("s")
        store.update(customer_name="Asha Rao", pickup_date="2024-06-01")

        decision = enter(BookingStep.TERMS, store)

        assert decision.redirected is False
        assert decision.resolved == BookingStep.TERMS
        assert decision.reason is None

    def test_checkout_without_terms_goes_to_terms(self):
        store = BookingStateStore("s")
        store.update(customer_name="Asha Rao", pickup_date="2024-06-01")

        decision = enter(BookingStep.CHECKOUT, store)

        assert decision.redirected is True
        assert decision.resolved == BookingStep.TERMS
        assert decision.reason == "Please accept the rental terms to continue."

    def test_confirmation_without_booking(self):
        decision = enter(BookingStep.CONFIRMATION, BookingStateStore("s"))

        assert decision.resolved == BookingStep.INTAKE
        assert decision.reason == "No confirmed booking was found for this session."

    def test_require_raises_with_redirect(self):
        with pytest.raises(StepGateError) as exc_info:
            require(BookingStep.CHECKOUT, BookingStateStore("s"))

        problem = exc_info.value.problem_details
        assert exc_info.value.status_code == 409
        assert problem["redirect_to"] == "intake"
        assert problem["requested_step"] == "checkout"
        assert problem["detail"] == "Please enter your details and trip dates first."


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("9845012345", "9845012345"),
        ("98450 12345", "9845012345"),
        ("+91-98450-12345", "919845012345"),
        ("", ""),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_validate_phone():
    assert validate_phone("(984) 501-2345") == "9845012345"

    with pytest.raises(PhoneValidationError):
        validate_phone("984501234")
    with pytest.raises(PhoneValidationError):
        validate_phone("+91 98450 12345")
