"""Fire-and-forget notifications to the business.

Request handlers only ever call ``NotificationDispatcher.enqueue``, which
never blocks and never raises. The notification worker later takes each job
off the queue, records the enquiry and emails the business through the
Resend HTTP API. Every failure on that path is logged and counted; none of
them reaches the customer.
"""

import asyncio
import html
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import settings
from ..core.database import async_session_factory
from ..core.exceptions import ProblemDetailsException
from ..core.observability import metrics_collector
from ..models.enquiry import EnquirySource, EnquiryStatus
from ..schemas.booking import BookingDraft
from ..schemas.enquiry import EnquiryPayload
from .duration import Duration, parse_instant
from .enquiry_service import EnquiryService

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    AVAILABILITY = "availability"
    BOOKING = "booking"


@dataclass(frozen=True)
class NotificationJob:
    """One enquiry to record plus the email announcing it."""

    kind: NotificationKind
    enquiry: EnquiryPayload
    recipient: str
    subject: str
    html: str


def _rows(pairs: list[tuple[str, str]]) -> str:
    cells = "".join(
        f"<tr><td><strong>{html.escape(label)}</strong></td><td>{html.escape(value)}</td></tr>"
        for label, value in pairs
    )
    return f"<table>{cells}</table>"


def _trip_rows(draft: BookingDraft, duration: Duration) -> list[tuple[str, str]]:
    return [
        ("Name", draft.customer_name),
        ("Phone", draft.customer_phone),
        ("Pickup", f"{draft.pickup_date} {draft.pickup_time}"),
        ("Drop", f"{draft.drop_date} {draft.drop_time}"),
        ("Location", draft.pickup_location or "Not specified"),
        ("Duration", duration.label),
    ]


def _enquiry(draft: BookingDraft, duration: Duration, **fields) -> EnquiryPayload:
    return EnquiryPayload(
        customer_name=draft.customer_name,
        customer_phone=draft.customer_phone,
        pickup_at=parse_instant(draft.pickup_date, draft.pickup_time, "pickup"),
        drop_at=parse_instant(draft.drop_date, draft.drop_time, "drop"),
        pickup_location=draft.pickup_location or None,
        total_days=duration.full_days,
        total_hours=duration.extra_hours,
        **fields,
    )


def availability_job(draft: BookingDraft, duration: Duration, transmission: str) -> NotificationJob:
    """Job sent when a customer checks availability."""
    rows = _trip_rows(draft, duration) + [("Transmission", transmission)]
    return NotificationJob(
        kind=NotificationKind.AVAILABILITY,
        enquiry=_enquiry(draft, duration, transmission=transmission),
        recipient=settings.availability_notification_recipient,
        subject=f"New availability enquiry from {draft.customer_name}",
        html=f"<h2>Availability enquiry</h2>{_rows(rows)}",
    )


def booking_job(draft: BookingDraft, duration: Duration) -> NotificationJob:
    """Job sent once the advance payment succeeds."""
    rows = _trip_rows(draft, duration) + [
        ("Booking ID", draft.booking_id or ""),
        ("Car", draft.car_display_name),
        ("Trip total", f"{settings.currency} {draft.total_amount}"),
        ("Advance paid", f"{settings.currency} {settings.advance_amount}"),
        ("Deposit", f"{draft.deposit_type.value} ({settings.currency} {draft.deposit_amount})"),
    ]
    return NotificationJob(
        kind=NotificationKind.BOOKING,
        enquiry=_enquiry(
            draft,
            duration,
            car_name=draft.car_display_name,
            estimated_price=draft.total_amount,
            booking_id=draft.booking_id,
            deposit_type=draft.deposit_type.value,
            source=EnquirySource.BOOKING,
            status=EnquiryStatus.CONFIRMED,
        ),
        recipient=settings.booking_notification_recipient,
        subject=f"New booking {draft.booking_id}: {draft.car_display_name}",
        html=f"<h2>Booking confirmed</h2>{_rows(rows)}",
    )


class EmailClient:
    """Thin client for the Resend email API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.api_url = api_url or settings.resend_api_url
        self.sender = sender or settings.notification_sender
        self.timeout = timeout if timeout is not None else settings.notification_timeout_seconds
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def send(self, recipient: str, subject: str, body_html: str) -> None:
        """
        Send one email.

        Raises:
            httpx.HTTPError: If the request fails or Resend rejects it
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": self.sender,
                    "to": [recipient],
                    "subject": subject,
                    "html": body_html,
                },
            )
            response.raise_for_status()


class NotificationDispatcher:
    """Queue of pending notification jobs and the logic to deliver them."""

    def __init__(
        self,
        email_client: Optional[EmailClient] = None,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        maxsize: Optional[int] = None,
    ):
        self.email_client = email_client or EmailClient()
        self.session_factory = session_factory or async_session_factory
        self.queue: asyncio.Queue[NotificationJob] = asyncio.Queue(
            maxsize=maxsize if maxsize is not None else settings.notification_queue_size
        )

    def enqueue(self, job: NotificationJob) -> bool:
        """Queue a job without waiting; returns False if it had to be dropped."""
        try:
            self.queue.put_nowait(job)
        except asyncio.QueueFull:
            metrics_collector.record_notification(job.kind.value, "dropped")
            logger.error(
                "Notification queue full, job dropped",
                extra={"kind": job.kind.value, "queue_size": self.queue.qsize()}
            )
            return False

        logger.debug("Notification queued", extra={"kind": job.kind.value})
        return True

    async def process_next(self) -> None:
        """Wait for the next job and deliver it."""
        job = await self.queue.get()
        try:
            await self.deliver(job)
        finally:
            self.queue.task_done()

    async def deliver(self, job: NotificationJob) -> None:
        """Record the enquiry, then send the email. Never raises."""
        await self._record(job)
        await self._email(job)

    async def _record(self, job: NotificationJob) -> None:
        try:
            async with self.session_factory() as db:
                await EnquiryService(db).create_enquiry(job.enquiry)
        except ProblemDetailsException as e:
            metrics_collector.record_notification(f"{job.kind.value}_enquiry", "rejected")
            logger.warning(
                "Enquiry not recorded",
                extra={"kind": job.kind.value, "reason": e.message}
            )
        except Exception as e:
            metrics_collector.record_notification(f"{job.kind.value}_enquiry", "failed")
            logger.error(
                "Enquiry write failed",
                exc_info=True,
                extra={"kind": job.kind.value, "error": str(e)}
            )

    async def _email(self, job: NotificationJob) -> None:
        if not self.email_client.configured:
            metrics_collector.record_notification(job.kind.value, "skipped")
            logger.info("Email not configured, notification skipped", extra={"kind": job.kind.value})
            return

        try:
            await self.email_client.send(job.recipient, job.subject, job.html)
        except httpx.HTTPError as e:
            metrics_collector.record_notification(job.kind.value, "failed")
            logger.error(
                "Notification email failed",
                extra={"kind": job.kind.value, "recipient": job.recipient, "error": str(e)}
            )
            return

        metrics_collector.record_notification(job.kind.value, "sent")
        logger.info("Notification email sent", extra={"kind": job.kind.value, "recipient": job.recipient})


notification_dispatcher = NotificationDispatcher()
