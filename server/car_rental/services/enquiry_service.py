"""Enquiry service: validated, rate-limited writes and admin triage."""

import logging
import re
from datetime import timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import EnquiryRateLimitError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..models.base import utcnow
from ..models.enquiry import BookingEnquiry, EnquirySource, EnquiryStatus
from ..schemas.enquiry import EnquiryPayload

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^[0-9]{10}$")
MIN_NAME_LENGTH = 2
MIN_DAYS = 2


def validate_enquiry(payload: EnquiryPayload) -> None:
    """
    Server-side checks applied before any enquiry is stored.

    Raises:
        ValidationError: If name, phone or day count is invalid
    """
    errors = {}
    if len(payload.customer_name.strip()) < MIN_NAME_LENGTH:
        errors["customer_name"] = "Name must be at least 2 characters"
    if not PHONE_PATTERN.match(payload.customer_phone):
        errors["customer_phone"] = "Phone must be exactly 10 digits"
    if payload.total_days < MIN_DAYS:
        errors["total_days"] = "Trips must be at least 2 days"

    if errors:
        metrics_collector.record_enquiry_rejected("validation")
        raise ValidationError(detail="Invalid enquiry", errors=errors, code="INVALID_ENQUIRY")


class EnquiryService:
    """
    Service for enquiry-related operations.

    Availability enquiries are rate limited per phone number: once a phone has
    ``rate_limit`` of them inside the trailing window, the next one is
    rejected. With the defaults of 5 per hour the 6th enquiry is refused.
    Booking enquiries written after payment are never limited.
    """

    def __init__(
        self,
        db: AsyncSession,
        rate_limit: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        self.db = db
        self.rate_limit = rate_limit if rate_limit is not None else settings.enquiry_rate_limit
        self.window_seconds = (
            window_seconds if window_seconds is not None else settings.enquiry_rate_window_seconds
        )

    async def count_recent(self, phone: str) -> int:
        """Availability enquiries from ``phone`` inside the trailing window."""
        since = utcnow() - timedelta(seconds=self.window_seconds)
        stmt = (
            select(func.count(BookingEnquiry.id))
            .where(BookingEnquiry.customer_phone == phone)
            .where(BookingEnquiry.source == EnquirySource.AVAILABILITY.value)
            .where(BookingEnquiry.created_at >= since)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def create_enquiry(self, payload: EnquiryPayload) -> BookingEnquiry:
        """
        Validate, rate-limit and store an enquiry.

        Args:
            payload: Enquiry fields

        Returns:
            Stored enquiry

        Raises:
            ValidationError: If the payload fails server-side checks
            EnquiryRateLimitError: If the phone already reached the hourly limit
                for availability enquiries
        """
        validate_enquiry(payload)

        if payload.source == EnquirySource.AVAILABILITY:
            await self._check_rate_limit(payload.customer_phone)

        enquiry = BookingEnquiry(**payload.model_dump(mode="json", exclude={"pickup_at", "drop_at"}))
        enquiry.pickup_at = payload.pickup_at
        enquiry.drop_at = payload.drop_at
        self.db.add(enquiry)
        await self.db.commit()
        await self.db.refresh(enquiry)

        logger.info(
            "Enquiry recorded",
            extra={
                "enquiry_id": str(enquiry.id),
                "source": enquiry.source,
                "booking_id": enquiry.booking_id,
            }
        )
        return enquiry

    async def _check_rate_limit(self, phone: str) -> None:
        recent = await self.count_recent(phone)
        if recent >= self.rate_limit:
            metrics_collector.record_enquiry_rejected("rate_limit")
            logger.warning(
                "Enquiry rejected by rate limit",
                extra={"customer_phone": phone, "recent": recent, "limit": self.rate_limit}
            )
            raise EnquiryRateLimitError(
                phone=phone,
                limit=self.rate_limit,
                window_seconds=self.window_seconds,
            )

    async def list_enquiries(
        self,
        status: Optional[EnquiryStatus] = None,
        limit: int = 100,
    ) -> list[BookingEnquiry]:
        """Newest first, optionally filtered by triage status."""
        stmt = select(BookingEnquiry).order_by(BookingEnquiry.created_at.desc()).limit(limit)
        if status is not None:
            stmt = stmt.where(BookingEnquiry.status == status.value)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_status(self, enquiry_id: str, status: EnquiryStatus) -> BookingEnquiry:
        """
        Move an enquiry to a new triage status.

        Raises:
            ValidationError: If the id is malformed
            NotFoundError: If the enquiry does not exist
        """
        try:
            enquiry_uuid = UUID(enquiry_id)
        except ValueError:
            raise ValidationError(
                detail=f"Invalid enquiry ID format: {enquiry_id}",
                errors={"enquiry_id": enquiry_id},
            ) from None

        enquiry = await self.db.get(BookingEnquiry, enquiry_uuid)
        if enquiry is None:
            raise NotFoundError(resource_type="enquiry", resource_id=enquiry_id)

        previous = enquiry.status
        enquiry.status = status.value
        await self.db.commit()
        await self.db.refresh(enquiry)

        logger.info(
            "Enquiry status updated",
            extra={"enquiry_id": enquiry_id, "from_status": previous, "to_status": status.value}
        )
        return enquiry
