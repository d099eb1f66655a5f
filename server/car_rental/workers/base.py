"""Supervised asyncio loop shared by background workers."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)


class BaseWorker(ABC):
    """
    Calls ``process`` repeatedly on its own task until ``stop``.

    Args:
        name: Used in log lines and as the task name
        interval_seconds: Floor on the time between iterations; 0 for workers
            that block inside ``process``
        retry_delay_seconds: Back-off after ``process`` raises
    """

    def __init__(self, name: str, interval_seconds: float = 0, retry_delay_seconds: float = 1.0):
        self.name = name
        self.interval_seconds = interval_seconds
        self.retry_delay_seconds = retry_delay_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @abstractmethod
    async def process(self) -> None:
        """One unit of work."""

    async def start(self) -> None:
        if self.is_running:
            logger.warning("Worker already running", extra={"worker": self.name})
            return
        self._task = asyncio.create_task(self._loop(), name=f"{self.name.lower()}-worker")
        logger.info("Worker started", extra={"worker": self.name})

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Worker stopped", extra={"worker": self.name})

    async def _loop(self) -> None:
        while True:
            started = time.monotonic()
            try:
                await self.process()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Worker iteration failed", extra={"worker": self.name})
                await asyncio.sleep(self.retry_delay_seconds)
                continue

            pause = self.interval_seconds - (time.monotonic() - started)
            if pause > 0:
                await asyncio.sleep(pause)
