"""Enquiry Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.enquiry import EnquirySource, EnquiryStatus


class EnquiryPayload(BaseModel):
    """Record written when a customer checks availability or completes payment."""

    customer_name: str
    customer_phone: str
    pickup_at: datetime
    drop_at: datetime
    pickup_location: Optional[str] = None
    total_days: int
    total_hours: int = 0
    transmission: Optional[str] = None
    car_name: Optional[str] = None
    estimated_price: Optional[int] = None
    booking_id: Optional[str] = None
    deposit_type: Optional[str] = None
    source: EnquirySource = EnquirySource.AVAILABILITY
    status: EnquiryStatus = EnquiryStatus.PENDING


class Enquiry(BaseModel):
    """Enquiry response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_name: str
    customer_phone: str
    pickup_at: datetime
    drop_at: datetime
    pickup_location: Optional[str] = None
    total_days: int
    total_hours: int
    transmission: Optional[str] = None
    car_name: Optional[str] = None
    estimated_price: Optional[int] = None
    booking_id: Optional[str] = None
    deposit_type: Optional[str] = None
    source: str
    status: str
    created_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v) -> str:
        return str(v)


class ListEnquiriesRequest(BaseModel):
    """Request schema for the admin enquiry list."""

    status: Optional[EnquiryStatus] = Field(None, description="Only enquiries in this status")
    limit: int = Field(100, ge=1, le=500)


class ListEnquiriesResponse(BaseModel):
    enquiries: list[Enquiry]
    total: int


class UpdateEnquiryStatusRequest(BaseModel):
    """Request schema for moving an enquiry through triage."""

    enquiry_id: str = Field(..., description="Enquiry to update")
    status: EnquiryStatus = Field(..., description="New triage status")
