"""Unit tests for the session-scoped booking store."""

import pytest

from car_rental.core.exceptions import NotFoundError, ValidationError
from car_rental.schemas.booking import BookingDraft, DepositType
from car_rental.services.booking_store import BookingSessionRegistry, BookingStateStore


@pytest.fixture
def store():
    return BookingStateStore("session-1")


class TestBookingStateStore:
    """Test draft merging and reset."""

    def test_starts_empty(self, store):
        assert store.read() == BookingDraft()
        assert store.terms_accepted is False
        assert store.payment_pending is False
        assert store.is_terminal is False

    def test_update_merges_shallowly(self, store):
        store.update(customer_name="Asha Rao", customer_phone="9845012345")
        store.update(pickup_date="2024-06-01")

        draft = store.read()
        assert draft.customer_name == "Asha Rao"
        assert draft.customer_phone == "9845012345"
        assert draft.pickup_date == "2024-06-01"
        assert draft.pickup_time == "10:00"

    def test_later_update_wins(self, store):
        store.update(customer_name="Asha")
        store.update(customer_name="Asha Rao")

        assert store.read().customer_name == "Asha Rao"

    def test_unknown_field_is_rejected(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.update(customer_email="asha@example.com")

        assert exc_info.value.problem_details["errors"]["fields"] == ["customer_email"]
        assert store.read() == BookingDraft()

    def test_out_of_range_value_is_rejected(self, store):
        with pytest.raises(ValidationError):
            store.update(extra_hours=24)

        assert store.read().extra_hours == 0

    def test_read_returns_a_copy(self, store):
        draft = store.read()
        draft.customer_name = "Mutated"

        assert store.read().customer_name == ""

    def test_reset_restores_initial_state(self, store):
        store.update(customer_name="Asha Rao", total_days=3, booking_id="BKTEST0001")
        store.terms_accepted = True
        store.payment_pending = True
        store.deposit_choice = DepositType.BIKE

        store.reset()

        assert store.read() == BookingDraft()
        assert store.terms_accepted is False
        assert store.payment_pending is False
        assert store.deposit_choice == DepositType.CASH

    def test_booking_id_makes_store_terminal(self, store):
        store.update(booking_id="BKTEST0001")
        assert store.is_terminal is True

    def test_snapshot(self, store):
        store.update(customer_name="Asha Rao")
        store.terms_accepted = True

        snapshot = store.snapshot()

        assert snapshot.session_id == "session-1"
        assert snapshot.draft.customer_name == "Asha Rao"
        assert snapshot.terms_accepted is True
        assert snapshot.payment_pending is False


class TestBookingSessionRegistry:
    """Test session lookup."""

    def test_open_and_get(self):
        registry = BookingSessionRegistry()
        store = registry.open()

        assert registry.get(store.session_id) is store
        assert store.session_id in registry
        assert len(registry) == 1

    def test_sessions_are_isolated(self):
        registry = BookingSessionRegistry()
        first = registry.open()
        second = registry.open()

        first.update(customer_name="Asha Rao")

        assert first.session_id != second.session_id
        assert second.read().customer_name == ""

    @pytest.mark.parametrize("session_id", [None, "", "missing"])
    def test_unknown_session(self, session_id):
        registry = BookingSessionRegistry()

        with pytest.raises(NotFoundError):
            registry.get(session_id)

    def test_close(self):
        registry = BookingSessionRegistry()
        store = registry.open()

        assert registry.close(store.session_id) is True
        assert registry.close(store.session_id) is False
        assert len(registry) == 0
