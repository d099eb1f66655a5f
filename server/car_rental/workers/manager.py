"""Worker manager for coordinating background tasks."""

import asyncio
import logging
from typing import Dict, Optional

from ..services.notification_service import NotificationDispatcher
from .base import BaseWorker
from .notification_worker import NotificationWorker

logger = logging.getLogger(__name__)


class WorkerManager:
    """Starts, stops and reports on the application's background workers."""

    def __init__(self, dispatcher: Optional[NotificationDispatcher] = None):
        self.workers: Dict[str, BaseWorker] = {
            "notification": NotificationWorker(dispatcher),
        }
        logger.info(f"Initialized {len(self.workers)} workers")

    async def start_all(self) -> None:
        """Start all workers."""
        for name, worker in self.workers.items():
            try:
                await worker.start()
            except Exception as e:
                logger.error(f"Failed to start worker {name}: {str(e)}", exc_info=True)

        logger.info(f"Started {len(self.workers)} workers")

    async def stop_all(self) -> None:
        """Stop all workers gracefully."""
        results = await asyncio.gather(
            *(worker.stop() for worker in self.workers.values()),
            return_exceptions=True,
        )

        for name, result in zip(self.workers.keys(), results):
            if isinstance(result, Exception):
                logger.error(f"Error stopping worker {name}: {str(result)}")

        logger.info("All workers stopped")

    def get_worker_status(self) -> Dict[str, bool]:
        """Map of worker name to running state."""
        return {name: worker.is_running for name, worker in self.workers.items()}


# Global worker manager instance
worker_manager = WorkerManager()
