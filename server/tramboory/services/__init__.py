"""Service layer package."""

from .availability import AvailabilityService
from .catalog_service import CatalogService
from .config_service import SystemConfigService
from .content_service import ContentService
from .coupon_service import CouponService
from .finance_service import FinanceService
from .idempotency_service import IdempotencyService
from .inventory_service import InventoryService
from .post_service import LoggingPostPublisher, PostPublisher, PostService
from .purchase_order_service import PurchaseOrderService
from .reservation_service import ReservationService
from .supplier_service import PenaltyService, SupplierPortalService, SupplierService

__all__ = [
    "AvailabilityService",
    "CatalogService",
    "SystemConfigService",
    "ContentService",
    "CouponService",
    "FinanceService",
    "IdempotencyService",
    "InventoryService",
    "LoggingPostPublisher",
    "PostPublisher",
    "PostService",
    "PurchaseOrderService",
    "ReservationService",
    "PenaltyService",
    "SupplierPortalService",
    "SupplierService",
]
