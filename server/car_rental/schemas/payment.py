"""Payment handoff Pydantic schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from .booking import BookingStep, SessionState


class CheckoutPrefill(BaseModel):
    name: str
    contact: str


class CheckoutNotes(BaseModel):
    """Free-form notes attached to the gateway order."""

    pickup_at: str
    drop_at: str
    pickup_location: str
    car_name: str
    customer_name: str
    customer_phone: str


class CheckoutTheme(BaseModel):
    color: str


class BalanceDue(BaseModel):
    """What is paid now versus at pickup."""

    advance_amount: int = Field(..., ge=0, description="Charged online now, major units")
    trip_total: int = Field(..., ge=0, description="Trip price, settled at pickup")
    deposit_amount: int = Field(..., ge=0, description="Refundable deposit collected at pickup")


class CheckoutSession(BaseModel):
    """Options handed to the payment gateway's client-side checkout."""

    key: str
    amount: int = Field(..., gt=0, description="Advance in minor currency units")
    currency: str
    name: str
    description: str
    prefill: CheckoutPrefill
    notes: CheckoutNotes
    theme: CheckoutTheme
    balance_due: BalanceDue
    manual_contact_url: str


class PaymentSuccessRequest(BaseModel):
    """Success callback forwarded from the gateway; the reference is not verified."""

    payment_id: str = Field(..., min_length=1, max_length=128)
    order_id: Optional[str] = Field(None, max_length=128)
    signature: Optional[str] = Field(None, max_length=256)


class PaymentSuccessResponse(BaseModel):
    booking_id: str
    session: SessionState
    next_step: BookingStep = BookingStep.CONFIRMATION


class PaymentFailureRequest(BaseModel):
    """Failure callback forwarded from the gateway."""

    error_code: Optional[str] = Field(None, max_length=64)
    error_description: Optional[str] = Field(None, max_length=512)
    payment_id: Optional[str] = Field(None, max_length=128)


class PaymentFailureResponse(BaseModel):
    """Message to show the customer, plus the manual booking fallback."""

    message: str
    manual_contact_url: str
    session: SessionState
