"""Base worker class for periodic background jobs."""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Optional

from ..core.observability import get_logger

logger = get_logger(__name__)


class BaseWorker(ABC):
    """
    Abstract base class for background workers.

    Subclasses implement ``process``; the base runs it every
    ``interval_seconds`` until stopped.
    """

    def __init__(self, name: str, interval_seconds: int = 60):
        """
        Initialize the worker.

        Args:
            name: Worker name for logging
            interval_seconds: How often to run the job
        """
        self.name = name
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self.log = logger.with_context(worker=name)

    @property
    def is_running(self) -> bool:
        return self._running

    @abstractmethod
    async def process(self) -> None:
        """Process one iteration of the job."""

    async def start(self) -> None:
        if self._running:
            self.log.warning("Worker is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        self.log.info("Worker started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Stop the worker and wait for the current iteration to be cancelled."""
        if not self._running:
            self.log.warning("Worker is not running")
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self.log.info("Worker stopped")

    async def _run(self) -> None:
        while self._running:
            try:
                started = time.monotonic()
                await self.process()

                duration = time.monotonic() - started
                self.log.debug("Worker iteration completed", duration_seconds=round(duration, 3))

                sleep_time = max(0, self.interval_seconds - duration)
                if sleep_time > 0:
                    await asyncio.sleep(sleep_time)

            except asyncio.CancelledError:
                self.log.info("Worker loop cancelled")
                break
            except Exception as e:
                self.log.error("Worker iteration failed", error=str(e), exc_info=True)
                # wait a full interval before retrying
                await asyncio.sleep(self.interval_seconds)
