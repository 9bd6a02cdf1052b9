"""Worker manager for coordinating background jobs."""

import asyncio
from typing import Dict

from ..core.config import settings
from ..core.observability import get_logger
from .base import BaseWorker
from .idempotency_cleanup_worker import IdempotencyCleanupWorker
from .inventory_alert_worker import InventoryAlertWorker
from .scheduled_post_worker import ScheduledPostWorker

logger = get_logger(__name__)


class WorkerManager:
    """Starts, stops and reports on the application's background workers."""

    def __init__(self):
        self.workers: Dict[str, BaseWorker] = {}
        self._setup_workers()

    def _setup_workers(self) -> None:
        self.workers["scheduled_posts"] = ScheduledPostWorker(
            interval_seconds=settings.post_publish_interval_seconds
        )
        self.workers["inventory_alerts"] = InventoryAlertWorker(
            interval_seconds=settings.alert_sweep_interval_seconds
        )
        self.workers["idempotency_cleanup"] = IdempotencyCleanupWorker(interval_seconds=3600)

        logger.info("Workers initialized", workers=sorted(self.workers))

    async def start_all(self) -> None:
        for name, worker in self.workers.items():
            try:
                await worker.start()
            except Exception as e:
                logger.error("Failed to start worker", worker=name, error=str(e), exc_info=True)

        logger.info("Workers started", count=len(self.workers))

    async def stop_all(self) -> None:
        """Stop all workers gracefully."""
        running = {name: worker for name, worker in self.workers.items() if worker.is_running}
        results = await asyncio.gather(
            *(worker.stop() for worker in running.values()),
            return_exceptions=True,
        )

        for name, result in zip(running, results):
            if isinstance(result, Exception):
                logger.error("Error stopping worker", worker=name, error=str(result))

        logger.info("Workers stopped", count=len(running))

    def get_worker(self, name: str) -> BaseWorker:
        """
        Get a specific worker by name.

        Raises:
            KeyError: If worker not found
        """
        return self.workers[name]

    def get_worker_status(self) -> Dict[str, bool]:
        return {name: worker.is_running for name, worker in self.workers.items()}


# Global worker manager instance
worker_manager = WorkerManager()
