"""Booking-flow Pydantic schemas."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .car import TransmissionFilter

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"
DEFAULT_TIME = "10:00"


class DepositType(str, Enum):
    """Security deposit left at pickup."""
    CASH = "cash"
    BIKE = "bike"
    NONE = "none"


class BookingStep(str, Enum):
    """Steps of the booking flow, in forward order."""
    INTAKE = "intake"
    TERMS = "terms"
    CHECKOUT = "checkout"
    CONFIRMATION = "confirmation"


class BookingDraft(BaseModel):
    """One customer's in-progress booking."""

    model_config = ConfigDict(extra="forbid")

    # Customer
    customer_name: str = ""
    customer_phone: str = ""

    # Schedule
    pickup_date: str = ""
    pickup_time: str = DEFAULT_TIME
    drop_date: str = ""
    drop_time: str = DEFAULT_TIME
    pickup_location: str = ""

    # Selected car
    car_id: str = ""
    car_name: str = ""
    car_brand: str = ""
    car_image: str = ""

    # Derived duration
    total_days: int = Field(0, ge=0)
    extra_hours: int = Field(0, ge=0, le=23)

    # Pricing
    base_price: int = Field(0, ge=0)
    total_amount: int = Field(0, ge=0)

    # Deposit
    deposit_type: DepositType = DepositType.NONE
    deposit_amount: int = Field(0, ge=0)

    # Set once the advance payment succeeds
    booking_id: Optional[str] = None

    @property
    def car_display_name(self) -> str:
        return f"{self.car_brand} {self.car_name}".strip()

    @property
    def pickup_at(self) -> str:
        return f"{self.pickup_date}T{self.pickup_time}" if self.pickup_date else ""

    @property
    def drop_at(self) -> str:
        return f"{self.drop_date}T{self.drop_time}" if self.drop_date else ""


class DurationInfo(BaseModel):
    """Computed trip duration."""

    total_hours: int = Field(..., ge=0)
    full_days: int = Field(..., ge=0)
    extra_hours: int = Field(..., ge=0, le=23)
    label: str


class SessionState(BaseModel):
    """Snapshot of a booking session."""

    session_id: str
    draft: BookingDraft
    terms_accepted: bool
    payment_pending: bool
    deposit_choice: DepositType = DepositType.CASH


class EnterStepRequest(BaseModel):
    """Request schema for entering a booking step."""

    step: BookingStep = Field(..., description="Step the client wants to show")


class StepDecision(BaseModel):
    """Result of running a step's entry guard."""

    requested: BookingStep
    resolved: BookingStep
    redirected: bool
    reason: Optional[str] = None


class IntakeRequest(BaseModel):
    """Request schema for the first step: customer and schedule."""

    customer_name: str = Field(..., max_length=128, description="Customer full name")
    customer_phone: str = Field(..., max_length=20, description="Mobile number; non-digits are ignored")
    pickup_date: str = Field("", description="Pickup date (YYYY-MM-DD)")
    pickup_time: str = Field(DEFAULT_TIME, pattern=TIME_PATTERN, description="Pickup time (HH:MM)")
    drop_date: str = Field("", description="Drop date (YYYY-MM-DD)")
    drop_time: str = Field(DEFAULT_TIME, pattern=TIME_PATTERN, description="Drop time (HH:MM)")
    pickup_location: str = Field("", description="Pickup hub, empty when undecided")
    transmission: TransmissionFilter = Field(TransmissionFilter.ALL, description="Gearbox preference")

    @field_validator("customer_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class IntakeResponse(BaseModel):
    """Response schema for intake submission."""

    session: SessionState
    duration: DurationInfo
    next_step: BookingStep


class SelectCarRequest(BaseModel):
    """Request schema for choosing a car from availability results."""

    car_id: str = Field(..., description="Car to book")


class TermsRequest(BaseModel):
    """Request schema for the terms checkbox."""

    accepted: bool = Field(..., description="Whether the rental terms are accepted")


class UpdateCustomerRequest(BaseModel):
    """Request schema for editing customer details at checkout."""

    customer_name: str = Field(..., max_length=128)
    customer_phone: str = Field(..., max_length=20)

    @field_validator("customer_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class UpdateTripRequest(BaseModel):
    """Request schema for editing the schedule at checkout."""

    pickup_date: str = Field(..., pattern=DATE_PATTERN)
    pickup_time: str = Field(DEFAULT_TIME, pattern=TIME_PATTERN)
    drop_date: str = Field(..., pattern=DATE_PATTERN)
    drop_time: str = Field(DEFAULT_TIME, pattern=TIME_PATTERN)


class DepositRequest(BaseModel):
    """Request schema for choosing the security deposit."""

    deposit_type: DepositType = Field(..., description="cash or bike")

    @field_validator("deposit_type")
    @classmethod
    def reject_none(cls, v: DepositType) -> DepositType:
        if v == DepositType.NONE:
            raise ValueError("Choose either a cash deposit or a bike with RC")
        return v


class ConfirmationResponse(BaseModel):
    """Response schema for the confirmation step."""

    booking_id: str
    draft: BookingDraft
    duration_label: str
    share_text: str
