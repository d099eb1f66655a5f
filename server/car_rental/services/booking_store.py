"""Session-scoped booking drafts.

Each browser tab owns one ``BookingStateStore`` for the lifetime of its
booking flow. Stores live in a ``BookingSessionRegistry`` keyed by an opaque
session id carried in the ``X-Booking-Session`` header. Drafts are never
persisted and never expire on their own; they are dropped on explicit reset
or when the process restarts.
"""

import logging
import secrets
from typing import Any, Optional

from ..core.exceptions import NotFoundError, ValidationError
from ..schemas.booking import BookingDraft, DepositType, SessionState

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Booking-Session"


class BookingStateStore:
    """Holds one in-progress booking plus the terms flag."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self._draft = BookingDraft()
        self._terms_accepted = False
        self._payment_pending = False
        self.deposit_choice = DepositType.CASH

    def read(self) -> BookingDraft:
        """Return a snapshot of the draft; mutating it does not touch the store."""
        return self._draft.model_copy()

    def update(self, **partial: Any) -> BookingDraft:
        """
        Shallow-merge ``partial`` into the draft.

        Fields not mentioned are kept. The merge has no await points, so two
        updates issued back to back on the event loop can never interleave.

        Raises:
            ValidationError: If a field is unknown or a value is out of range
        """
        unknown = sorted(set(partial) - set(BookingDraft.model_fields))
        if unknown:
            raise ValidationError(
                detail=f"Unknown booking field(s): {', '.join(unknown)}",
                errors={"fields": unknown},
            )

        merged = {**self._draft.model_dump(), **partial}
        try:
            self._draft = BookingDraft.model_validate(merged)
        except ValueError as e:
            raise ValidationError(detail=f"Invalid booking update: {e}") from None
        return self.read()

    def reset(self) -> None:
        """Restore the empty draft, clear both flags and the pending deposit choice."""
        self._draft = BookingDraft()
        self._terms_accepted = False
        self._payment_pending = False
        self.deposit_choice = DepositType.CASH
        logger.info("Booking draft reset", extra={"booking_session": self.session_id})

    @property
    def terms_accepted(self) -> bool:
        return self._terms_accepted

    @terms_accepted.setter
    def terms_accepted(self, value: bool) -> None:
        self._terms_accepted = bool(value)

    @property
    def payment_pending(self) -> bool:
        return self._payment_pending

    @payment_pending.setter
    def payment_pending(self, value: bool) -> None:
        self._payment_pending = bool(value)

    @property
    def is_terminal(self) -> bool:
        """True once payment has succeeded and a booking id is recorded."""
        return self._draft.booking_id is not None

    def snapshot(self) -> SessionState:
        return SessionState(
            session_id=self.session_id,
            draft=self.read(),
            terms_accepted=self._terms_accepted,
            payment_pending=self._payment_pending,
            deposit_choice=self.deposit_choice,
        )


class BookingSessionRegistry:
    """In-process map of session id to booking store."""

    def __init__(self):
        self._stores: dict[str, BookingStateStore] = {}

    def open(self) -> BookingStateStore:
        """Start a new booking flow with an empty draft."""
        session_id = secrets.token_urlsafe(16)
        store = BookingStateStore(session_id)
        self._stores[session_id] = store
        logger.info("Booking session opened", extra={"booking_session": session_id})
        return store

    def get(self, session_id: Optional[str]) -> BookingStateStore:
        """
        Look up an open session.

        Raises:
            NotFoundError: If the id is missing or unknown
        """
        store = self._stores.get(session_id) if session_id else None
        if store is None:
            logger.warning("Booking session not found", extra={"booking_session": session_id})
            raise NotFoundError(resource_type="booking session", resource_id=session_id)
        return store

    def close(self, session_id: str) -> bool:
        """Drop a session; returns False if it was not open."""
        removed = self._stores.pop(session_id, None) is not None
        if removed:
            logger.info("Booking session closed", extra={"booking_session": session_id})
        return removed

    def __len__(self) -> int:
        return len(self._stores)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._stores


booking_registry = BookingSessionRegistry()
