"""Inventory model definitions: products, stock per location, batches, movements and alerts."""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    Float,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base
from .base import TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from .supplier import Supplier


class ProductStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DISCONTINUED = "DISCONTINUED"


class MovementType(str, Enum):
    """Inventory movement types."""
    ENTRADA = "ENTRADA"
    SALIDA = "SALIDA"
    TRANSFERENCIA = "TRANSFERENCIA"
    AJUSTE = "AJUSTE"
    MERMA = "MERMA"


class BatchStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    QUARANTINE = "quarantine"
    EXPIRED = "expired"


class AlertType(str, Enum):
    LOW_STOCK = "LOW_STOCK"
    EXPIRY_WARNING = "EXPIRY_WARNING"
    REORDER_POINT = "REORDER_POINT"
    EXPIRED_PRODUCT = "EXPIRED_PRODUCT"
    QUARANTINE_ALERT = "QUARANTINE_ALERT"


class AlertPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


# Sort order for alert listings, most urgent first
ALERT_PRIORITY_RANK = {
    AlertPriority.CRITICAL: 0,
    AlertPriority.HIGH: 1,
    AlertPriority.MEDIUM: 2,
    AlertPriority.LOW: 3,
}

# Offered when classifying products, merged with whatever categories are in use
PRODUCT_CATEGORIES = (
    "Bebidas",
    "Bebidas Alcohólicas",
    "Cervezas",
    "Vinos",
    "Licores",
    "Alimentos",
    "Snacks",
    "Botanas",
    "Dulces",
    "Comida Preparada",
    "Ingredientes",
    "Condimentos",
    "Especias",
    "Aceites",
    "Vinagres",
    "Lácteos",
    "Carnes",
    "Pescados",
    "Mariscos",
    "Frutas",
    "Verduras",
    "Granos",
    "Cereales",
    "Panadería",
    "Repostería",
    "Congelados",
    "Enlatados",
    "Conservas",
    "Productos de Limpieza",
    "Detergentes",
    "Desinfectantes",
    "Artículos de Higiene",
    "Papel",
    "Plásticos",
    "Utensilios",
    "Equipos",
    "Herramientas",
    "Suministros",
    "Otros",
)


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Stock-keeping product with a base unit and optional alternative units."""

    __tablename__ = "products"

    product_id: Mapped[str] = mapped_column(String(40), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    base_unit: Mapped[str] = mapped_column(String(20), nullable=False)
    # [{code, name, conversionFactor}] where 1 code = conversionFactor base units
    alternative_units: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    min_stock: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    reorder_point: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    max_stock: Mapped[float] = mapped_column(Float, nullable=False, default=100)

    cost_price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    is_perishable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    supplier_id: Mapped[UUID | None] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("suppliers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    status: Mapped[ProductStatus] = mapped_column(String(20), nullable=False, default=ProductStatus.ACTIVE)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    supplier: Mapped["Supplier | None"] = relationship("Supplier", lazy="selectin")

    __table_args__ = (
        CheckConstraint("min_stock >= 0", name="ck_product_min_stock_non_negative"),
        CheckConstraint("max_stock >= 0", name="ck_product_max_stock_non_negative"),
        CheckConstraint("cost_price >= 0", name="ck_product_cost_price_non_negative"),
        CheckConstraint("unit_price >= 0", name="ck_product_unit_price_non_negative"),
    )

    @property
    def stock_levels(self) -> dict:
        return {"minimum": self.min_stock, "reorderPoint": self.reorder_point, "maximum": self.max_stock}

    def __repr__(self) -> str:
        return f"<Product(product_id='{self.product_id}', name='{self.name}', unit='{self.base_unit}')>"


class Inventory(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Stock of one product at one location; totals are derived from its batches."""

    __tablename__ = "inventories"

    product_id: Mapped[UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    location_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)

    available: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    reserved: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    quarantine: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    last_updated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    product: Mapped[Product] = relationship("Product", lazy="selectin")
    batches: Mapped[list["InventoryBatch"]] = relationship(
        "InventoryBatch",
        back_populates="inventory",
        cascade="all, delete-orphan",
        order_by="InventoryBatch.received_date",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("product_id", "location_id", name="uq_inventory_product_location"),
        CheckConstraint("available >= 0", name="ck_inventory_available_non_negative"),
        CheckConstraint("reserved >= 0", name="ck_inventory_reserved_non_negative"),
        CheckConstraint("quarantine >= 0", name="ck_inventory_quarantine_non_negative"),
    )

    def recalculate_totals(self) -> None:
        """Recompute totals from batches; expired batches are not counted."""
        available = reserved = quarantine = 0.0
        for batch in self.batches:
            if batch.status == BatchStatus.AVAILABLE:
                available += batch.quantity
            elif batch.status == BatchStatus.QUARANTINE:
                quarantine += batch.quantity
            if batch.status != BatchStatus.EXPIRED:
                reserved += batch.reserved_quantity
        self.available = round(available, 6)
        self.reserved = round(reserved, 6)
        self.quarantine = round(quarantine, 6)

    def mark_expired_batches(self, today: date) -> int:
        """Flag batches whose expiry date has passed and refresh totals. Returns how many changed."""
        changed = 0
        for batch in self.batches:
            if batch.status == BatchStatus.EXPIRED or batch.expiry_date is None:
                continue
            if batch.expiry_date <= today:
                batch.status = BatchStatus.EXPIRED
                changed += 1
        if changed:
            self.recalculate_totals()
        return changed

    @property
    def totals(self) -> dict:
        return {
            "available": self.available,
            "reserved": self.reserved,
            "quarantine": self.quarantine,
            "unit": self.unit,
        }

    def __repr__(self) -> str:
        return (
            f"<Inventory(product_id={self.product_id}, location='{self.location_id}', "
            f"available={self.available}, reserved={self.reserved})>"
        )


class InventoryBatch(UUIDPrimaryKeyMixin, Base):
    """Lot of a product received at one time, consumed first-in first-out."""

    __tablename__ = "inventory_batches"

    inventory_id: Mapped[UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("inventories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    batch_id: Mapped[str] = mapped_column(String(60), nullable=False, index=True)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    reserved_quantity: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    cost_per_unit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    received_date: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow)
    status: Mapped[BatchStatus] = mapped_column(String(20), nullable=False, default=BatchStatus.AVAILABLE)

    inventory: Mapped[Inventory] = relationship("Inventory", back_populates="batches")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_batch_quantity_non_negative"),
        CheckConstraint("reserved_quantity >= 0", name="ck_batch_reserved_non_negative"),
        CheckConstraint("cost_per_unit >= 0", name="ck_batch_cost_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<InventoryBatch(batch_id='{self.batch_id}', quantity={self.quantity}, status='{self.status}')>"


class InventoryMovement(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Audit record of a stock change."""

    __tablename__ = "inventory_movements"

    movement_id: Mapped[str] = mapped_column(String(40), nullable=False, unique=True, index=True)
    type: Mapped[MovementType] = mapped_column(String(20), nullable=False, index=True)
    product_id: Mapped[UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_location: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    to_location: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    batch_id: Mapped[str | None] = mapped_column(String(60), nullable=True)
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    unit_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")
    performed_by: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    extra_data: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_movement_quantity_positive"),
        CheckConstraint("length(reason) > 0", name="ck_movement_reason_not_empty"),
    )

    @property
    def cost(self) -> dict | None:
        if self.unit_cost is None:
            return None
        return {"unitCost": self.unit_cost, "totalCost": self.total_cost, "currency": self.currency}

    def __repr__(self) -> str:
        return f"<InventoryMovement(movement_id='{self.movement_id}', type='{self.type}', quantity={self.quantity})>"


class InventoryAlert(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Stock or expiry condition that needs attention."""

    __tablename__ = "inventory_alerts"

    alert_id: Mapped[str] = mapped_column(String(40), nullable=False, unique=True, index=True)
    type: Mapped[AlertType] = mapped_column(String(30), nullable=False, index=True)
    priority: Mapped[AlertPriority] = mapped_column(String(10), nullable=False)
    product_id: Mapped[UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    location_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    batch_id: Mapped[str | None] = mapped_column(String(60), nullable=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    threshold: Mapped[float | None] = mapped_column(Float, nullable=True)
    current_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    resolved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    resolution: Mapped[str | None] = mapped_column(Text, nullable=True)

    product: Mapped[Product] = relationship("Product", lazy="selectin")

    def __repr__(self) -> str:
        return f"<InventoryAlert(alert_id='{self.alert_id}', type='{self.type}', priority='{self.priority}')>"
