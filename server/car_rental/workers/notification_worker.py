"""Background worker that delivers queued notifications."""

import logging
from typing import Optional

from ..services.notification_service import NotificationDispatcher, notification_dispatcher
from .base import BaseWorker

logger = logging.getLogger(__name__)


class NotificationWorker(BaseWorker):
    """
    Drains the notification queue one job at a time.

    Request handlers only enqueue; this worker records the enquiry and sends
    the email, so a slow or failing email provider never delays a response.
    """

    def __init__(self, dispatcher: Optional[NotificationDispatcher] = None):
        super().__init__(name="Notification", interval_seconds=0)
        self.dispatcher = dispatcher or notification_dispatcher

    async def process(self) -> None:
        await self.dispatcher.process_next()

    async def stop(self) -> None:
        pending = self.dispatcher.queue.qsize()
        if pending:
            logger.warning(
                "Notification worker stopping with undelivered jobs",
                extra={"pending": pending, "worker": self.name}
            )
        await super().stop()
