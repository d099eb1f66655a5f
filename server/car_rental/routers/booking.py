"""Booking router for the multi-step booking flow."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_booking_registry, get_booking_store, get_db, get_notifier
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.booking import (
    ConfirmationResponse,
    DepositRequest,
    EnterStepRequest,
    IntakeRequest,
    IntakeResponse,
    SelectCarRequest,
    SessionState,
    StepDecision,
    TermsRequest,
    UpdateCustomerRequest,
    UpdateTripRequest,
)
from ..schemas.common import problem_responses
from ..schemas.payment import (
    CheckoutSession,
    PaymentFailureRequest,
    PaymentFailureResponse,
    PaymentSuccessRequest,
    PaymentSuccessResponse,
)
from ..services import step_gate
from ..services.booking_flow import BookingFlowService
from ..services.booking_store import SESSION_HEADER, BookingSessionRegistry, BookingStateStore
from ..services.notification_service import NotificationDispatcher
from ..services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"])

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)
STORE_DEPENDENCY = Depends(get_booking_store)
REGISTRY_DEPENDENCY = Depends(get_booking_registry)
NOTIFIER_DEPENDENCY = Depends(get_notifier)


def _respond(model: BaseModel, store: BookingStateStore) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content=model.model_dump(mode="json"),
        headers={SESSION_HEADER: store.session_id},
    )


def _flow(
    db: AsyncSession = DB_DEPENDENCY,
    store: BookingStateStore = STORE_DEPENDENCY,
    notifier: NotificationDispatcher = NOTIFIER_DEPENDENCY,
) -> BookingFlowService:
    return BookingFlowService(db, store, notifier)


def _payments(
    store: BookingStateStore = STORE_DEPENDENCY,
    notifier: NotificationDispatcher = NOTIFIER_DEPENDENCY,
) -> PaymentService:
    return PaymentService(store, notifier)


FLOW_DEPENDENCY = Depends(_flow)
PAYMENT_DEPENDENCY = Depends(_payments)


@router.post("/session/start", response_model=SessionState)
async def start_session(registry: BookingSessionRegistry = REGISTRY_DEPENDENCY) -> JSONResponse:
    """
    Open a new booking session with an empty draft.

    The returned id must be sent as the ``X-Booking-Session`` header on every
    other booking call.
    """
    store = registry.open()
    return _respond(store.snapshot(), store)


@router.post("/session/get", response_model=SessionState, responses=problem_responses(404))
async def get_session(store: BookingStateStore = STORE_DEPENDENCY) -> JSONResponse:
    """Current draft and flags."""
    return _respond(store.snapshot(), store)


@router.post("/step", response_model=StepDecision, responses=problem_responses(404))
async def enter_step(
    request: EnterStepRequest,
    store: BookingStateStore = STORE_DEPENDENCY,
) -> JSONResponse:
    """
    Ask which step to show.

    A missing prerequisite is not an error: the response names the step the
    client should redirect to.
    """
    return _respond(step_gate.enter(request.step, store), store)


@router.post("/intake", response_model=IntakeResponse, responses=problem_responses(400, 404, 409))
async def submit_intake(
    request: IntakeRequest,
    store: BookingStateStore = STORE_DEPENDENCY,
    flow: BookingFlowService = FLOW_DEPENDENCY,
) -> JSONResponse:
    """Submit customer details and the trip schedule."""
    try:
        response_data = await flow.submit_intake(request)
    except ProblemDetailsException:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error in intake submission",
            extra={"booking_session": store.session_id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e

    return _respond(response_data, store)


@router.post("/select-car", response_model=SessionState, responses=problem_responses(400, 404, 409))
async def select_car(
    request: SelectCarRequest,
    store: BookingStateStore = STORE_DEPENDENCY,
    flow: BookingFlowService = FLOW_DEPENDENCY,
) -> JSONResponse:
    """Choose a car from the availability list."""
    try:
        response_data = await flow.select_car(request)
    except ProblemDetailsException:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error in car selection",
            extra={"booking_session": store.session_id, "car_id": request.car_id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e

    return _respond(response_data, store)


@router.post("/terms", response_model=SessionState, responses=problem_responses(404, 409))
async def accept_terms(
    request: TermsRequest,
    store: BookingStateStore = STORE_DEPENDENCY,
    flow: BookingFlowService = FLOW_DEPENDENCY,
) -> JSONResponse:
    """Tick or untick the rental terms checkbox."""
    return _respond(flow.accept_terms(request), store)


@router.post("/checkout/customer", response_model=SessionState, responses=problem_responses(400, 404, 409))
async def update_customer(
    request: UpdateCustomerRequest,
    store: BookingStateStore = STORE_DEPENDENCY,
    flow: BookingFlowService = FLOW_DEPENDENCY,
) -> JSONResponse:
    """Edit name and phone on the checkout page."""
    return _respond(flow.update_customer(request), store)


@router.post("/checkout/trip", response_model=SessionState, responses=problem_responses(400, 404, 409))
async def update_trip(
    request: UpdateTripRequest,
    store: BookingStateStore = STORE_DEPENDENCY,
    flow: BookingFlowService = FLOW_DEPENDENCY,
) -> JSONResponse:
    """Edit the schedule on the checkout page; the selected car is re-priced."""
    try:
        response_data = await flow.update_trip(request)
    except ProblemDetailsException:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error in trip update",
            extra={"booking_session": store.session_id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e

    return _respond(response_data, store)


@router.post("/checkout/deposit", response_model=SessionState, responses=problem_responses(404, 409))
async def choose_deposit(
    request: DepositRequest,
    store: BookingStateStore = STORE_DEPENDENCY,
    flow: BookingFlowService = FLOW_DEPENDENCY,
) -> JSONResponse:
    """Choose between a cash deposit and leaving a bike with RC."""
    return _respond(flow.choose_deposit(request), store)


@router.post("/payment/initiate", response_model=CheckoutSession, responses=problem_responses(400, 404, 409))
async def initiate_payment(
    store: BookingStateStore = STORE_DEPENDENCY,
    payments: PaymentService = PAYMENT_DEPENDENCY,
) -> JSONResponse:
    """
    Build the gateway checkout options for the advance payment.

    Only one payment may be pending per session.
    """
    return _respond(payments.initiate(), store)


@router.post("/payment/success", response_model=PaymentSuccessResponse, responses=problem_responses(404, 409))
async def payment_success(
    request: PaymentSuccessRequest,
    store: BookingStateStore = STORE_DEPENDENCY,
    payments: PaymentService = PAYMENT_DEPENDENCY,
) -> JSONResponse:
    """Gateway reported success: assign the booking id."""
    return _respond(payments.on_success(request), store)


@router.post("/payment/failure", response_model=PaymentFailureResponse, responses=problem_responses(404))
async def payment_failure(
    request: PaymentFailureRequest,
    store: BookingStateStore = STORE_DEPENDENCY,
    payments: PaymentService = PAYMENT_DEPENDENCY,
) -> JSONResponse:
    """Gateway reported failure: the draft is kept and payment may be retried."""
    return _respond(payments.on_failure(request), store)


@router.post("/payment/cancel", response_model=SessionState, responses=problem_responses(404))
async def payment_cancel(
    store: BookingStateStore = STORE_DEPENDENCY,
    payments: PaymentService = PAYMENT_DEPENDENCY,
) -> JSONResponse:
    """Customer dismissed the checkout."""
    return _respond(payments.on_cancel(), store)


@router.post("/confirmation", response_model=ConfirmationResponse, responses=problem_responses(404, 409))
async def confirmation(
    store: BookingStateStore = STORE_DEPENDENCY,
    flow: BookingFlowService = FLOW_DEPENDENCY,
) -> JSONResponse:
    """Booking summary and share text once payment has succeeded."""
    return _respond(flow.confirmation(), store)


@router.post("/reset", response_model=SessionState, responses=problem_responses(404))
async def reset_booking(
    store: BookingStateStore = STORE_DEPENDENCY,
    flow: BookingFlowService = FLOW_DEPENDENCY,
) -> JSONResponse:
    """Clear the draft and terms flag, e.g. when returning home after confirmation."""
    return _respond(flow.reset(), store)
