"""Background workers for the car rental booking service."""

from .notification_worker import NotificationWorker

__all__ = ["NotificationWorker"]
