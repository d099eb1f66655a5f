"""Service layer package."""

from .booking_flow import BookingFlowService
from .booking_store import BookingSessionRegistry, BookingStateStore
from .enquiry_service import EnquiryService
from .fleet_service import FleetService
from .notification_service import NotificationDispatcher
from .payment_service import PaymentService

__all__ = [
    "BookingFlowService",
    "BookingSessionRegistry",
    "BookingStateStore",
    "EnquiryService",
    "FleetService",
    "NotificationDispatcher",
    "PaymentService",
]
