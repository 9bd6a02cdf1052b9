"""Models module exporting all database models."""

from .catalog import (
    Coupon,
    CouponScope,
    DiscountType,
    EventTheme,
    ExtraService,
    ExtraServiceCategory,
    FoodCategory,
    FoodOption,
    Package,
    Thematic,
)
from .content import (
    CarouselCard,
    ContactMessage,
    ContactMessageStatus,
    ContactSettings,
    GalleryItem,
    HeroContent,
)
from .finance import Finance, FinanceCategory, FinancePaymentMethod, FinanceStatus, FinanceType
from .idempotency import IdempotencyRecord
from .inventory import (
    AlertPriority,
    AlertType,
    BatchStatus,
    Inventory,
    InventoryAlert,
    InventoryBatch,
    InventoryMovement,
    MovementType,
    Product,
    ProductStatus,
)
from .post import PostPlatform, PostPriority, PostStatus, ScheduledPost
from .purchase_order import PurchaseOrder, PurchaseOrderStatus
from .reservation import PaymentStatus, Reservation, ReservationPaymentMethod, ReservationStatus
from .supplier import (
    PenaltyConcept,
    PenaltySeverity,
    PenaltyStatus,
    Supplier,
    SupplierPaymentMethod,
    SupplierPenalty,
    SupplierStatus,
)
from .system_config import SystemConfig

__all__ = [
    # Catalogue
    "Package",
    "EventTheme",
    "FoodOption",
    "FoodCategory",
    "ExtraService",
    "ExtraServiceCategory",
    "Thematic",
    "Coupon",
    "CouponScope",
    "DiscountType",

    # Booking
    "SystemConfig",
    "Reservation",
    "ReservationStatus",
    "PaymentStatus",
    "ReservationPaymentMethod",

    # Back office
    "Finance",
    "FinanceType",
    "FinanceCategory",
    "FinanceStatus",
    "FinancePaymentMethod",
    "Product",
    "ProductStatus",
    "Inventory",
    "InventoryBatch",
    "BatchStatus",
    "InventoryMovement",
    "MovementType",
    "InventoryAlert",
    "AlertType",
    "AlertPriority",
    "Supplier",
    "SupplierStatus",
    "SupplierPaymentMethod",
    "SupplierPenalty",
    "PenaltyConcept",
    "PenaltySeverity",
    "PenaltyStatus",
    "PurchaseOrder",
    "PurchaseOrderStatus",

    # Site content
    "HeroContent",
    "GalleryItem",
    "CarouselCard",
    "ContactSettings",
    "ContactMessage",
    "ScheduledPost",
    "PostStatus",
    "PostPriority",
    "PostPlatform",

    # Idempotency
    "IdempotencyRecord",
]
