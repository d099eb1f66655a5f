"""Entry guards for the four booking steps.

The flow is ``intake -> terms -> checkout -> confirmation``. Entering a step
runs its guard against the current draft; when prerequisites are missing the
guard names the earliest step the customer should be sent back to. Guards
never modify the draft, so going back and forth is always safe.
"""

import logging
import re

from ..core.exceptions import PhoneValidationError, StepGateError
from ..core.observability import metrics_collector
from ..schemas.booking import BookingDraft, BookingStep, StepDecision
from .booking_store import BookingStateStore

logger = logging.getLogger(__name__)

PHONE_DIGITS = 10
_NON_DIGITS = re.compile(r"\D")

REDIRECT_REASONS = {
    BookingStep.INTAKE: "Please enter your details and trip dates first.",
    BookingStep.TERMS: "Please accept the rental terms to continue.",
}
NO_BOOKING_REASON = "No confirmed booking was found for this session."


def _has_customer_and_dates(draft: BookingDraft) -> bool:
    return bool(draft.customer_name) and bool(draft.pickup_date)


def guard(step: BookingStep, draft: BookingDraft, terms_accepted: bool) -> BookingStep:
    """Return the step that should actually be shown when ``step`` is requested."""
    if step == BookingStep.TERMS:
        return step if _has_customer_and_dates(draft) else BookingStep.INTAKE

    if step == BookingStep.CHECKOUT:
        if not _has_customer_and_dates(draft):
            return BookingStep.INTAKE
        return step if terms_accepted else BookingStep.TERMS

    if step == BookingStep.CONFIRMATION:
        return step if draft.booking_id is not None else BookingStep.INTAKE

    return BookingStep.INTAKE


def _reason(requested: BookingStep, resolved: BookingStep) -> str:
    if requested == BookingStep.CONFIRMATION:
        return NO_BOOKING_REASON
    return REDIRECT_REASONS[resolved]


def enter(step: BookingStep, store: BookingStateStore) -> StepDecision:
    """Run the guard for ``step`` and report where the customer ends up."""
    resolved = guard(step, store.read(), store.terms_accepted)
    if resolved == step:
        return StepDecision(requested=step, resolved=resolved, redirected=False)

    metrics_collector.record_step_redirect(step.value, resolved.value)
    logger.info(
        "Booking step redirected",
        extra={
            "booking_session": store.session_id,
            "requested_step": step.value,
            "resolved_step": resolved.value,
        }
    )
    return StepDecision(
        requested=step,
        resolved=resolved,
        redirected=True,
        reason=_reason(step, resolved),
    )


def require(step: BookingStep, store: BookingStateStore) -> None:
    """
    Ensure ``step`` may be acted on.

    Raises:
        StepGateError: If the guard redirects elsewhere
    """
    decision = enter(step, store)
    if decision.redirected:
        raise StepGateError(
            requested_step=decision.requested.value,
            resolved_step=decision.resolved.value,
            reason=decision.reason,
        )


def normalize_phone(raw: str) -> str:
    """Strip everything except digits."""
    return _NON_DIGITS.sub("", raw or "")


def validate_phone(raw: str) -> str:
    """
    Normalize a phone number and require exactly ten digits.

    Raises:
        PhoneValidationError: If the digit count is wrong
    """
    digits = normalize_phone(raw)
    if len(digits) != PHONE_DIGITS:
        raise PhoneValidationError(raw)
    return digits
