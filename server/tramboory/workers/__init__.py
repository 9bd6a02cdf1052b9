"""Background workers."""

from .base import BaseWorker
from .idempotency_cleanup_worker import IdempotencyCleanupWorker
from .inventory_alert_worker import InventoryAlertWorker
from .manager import WorkerManager, worker_manager
from .scheduled_post_worker import ScheduledPostWorker

__all__ = [
    "BaseWorker",
    "IdempotencyCleanupWorker",
    "InventoryAlertWorker",
    "ScheduledPostWorker",
    "WorkerManager",
    "worker_manager",
]
