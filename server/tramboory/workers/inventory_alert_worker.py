"""Background worker that sweeps inventory for stock and expiry alerts."""

from ..core.database import async_session_factory
from ..services.inventory_service import InventoryService
from .base import BaseWorker


class InventoryAlertWorker(BaseWorker):
    """Marks expired batches and raises low-stock, reorder and expiry alerts for every inventory."""

    def __init__(self, interval_seconds: int = 3600):
        super().__init__(name="InventoryAlerts", interval_seconds=interval_seconds)

    async def process(self) -> None:
        async with async_session_factory() as db:
            try:
                created = await InventoryService(db).check_alerts()
            except Exception:
                await db.rollback()
                raise

        if created:
            self.log.info("Inventory alerts raised", created=len(created))
