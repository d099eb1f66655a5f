"""Booking enquiry model definition."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .base import utcnow


class EnquiryStatus(str, Enum):
    """Admin triage status of an enquiry."""
    PENDING = "Pending"
    CONTACTED = "Contacted"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class EnquirySource(str, Enum):
    """Which step of the booking flow produced the enquiry."""
    AVAILABILITY = "availability"
    BOOKING = "booking"


class BookingEnquiry(Base):
    """Enquiry entity recording an availability check or a paid booking."""

    __tablename__ = "booking_enquiries"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Customer
    customer_name: Mapped[str] = mapped_column(String(128), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(10), nullable=False, index=True)

    # Trip
    pickup_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    drop_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    pickup_location: Mapped[str | None] = mapped_column(String(64), nullable=True)
    total_days: Mapped[int] = mapped_column(Integer, nullable=False)
    total_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    transmission: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Filled in once a car is booked
    car_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    estimated_price: Mapped[int | None] = mapped_column(Integer, nullable=True)
    booking_id: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    deposit_type: Mapped[str | None] = mapped_column(String(16), nullable=True)

    source: Mapped[str] = mapped_column(String(16), nullable=False, default=EnquirySource.AVAILABILITY.value)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=EnquiryStatus.PENDING.value,
        index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("length(customer_name) >= 2", name="ck_enquiry_customer_name_min_length"),
        CheckConstraint("length(customer_phone) = 10", name="ck_enquiry_customer_phone_length"),
        CheckConstraint("total_days >= 2", name="ck_enquiry_total_days_min"),
        CheckConstraint("total_hours >= 0 AND total_hours <= 23", name="ck_enquiry_total_hours_range"),
    )

    def __repr__(self) -> str:
        return (
            f"<BookingEnquiry(id={self.id}, phone='{self.customer_phone}', "
            f"status='{self.status}', booking_id={self.booking_id})>"
        )
