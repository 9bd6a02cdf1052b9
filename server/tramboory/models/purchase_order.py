"""Purchase order model definition."""

from datetime import date, datetime, timedelta
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, CheckConstraint, Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base
from .base import TimestampMixin, UUIDPrimaryKeyMixin
from .supplier import Supplier, SupplierPaymentMethod


class PurchaseOrderStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    ORDERED = "ORDERED"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


DEFAULT_TAX_RATE = 0.16


class PurchaseOrder(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Order placed with a supplier; totals are derived from its items."""

    __tablename__ = "purchase_orders"

    purchase_order_id: Mapped[str] = mapped_column(String(40), nullable=False, unique=True, index=True)
    supplier_id: Mapped[UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("suppliers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    supplier_name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[PurchaseOrderStatus] = mapped_column(
        String(20), nullable=False, default=PurchaseOrderStatus.DRAFT, index=True
    )

    # [{productId, productName, quantity, unit, unitPrice, totalPrice, notes}]
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    subtotal: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    tax_rate: Mapped[float] = mapped_column(Float, nullable=False, default=DEFAULT_TAX_RATE)
    tax: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")

    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    delivery_location: Mapped[str | None] = mapped_column(String(100), nullable=True)

    payment_method: Mapped[SupplierPaymentMethod] = mapped_column(
        String(20), nullable=False, default=SupplierPaymentMethod.CASH
    )
    credit_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    payment_due_date: Mapped[datetime | None] = mapped_column(nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # [{status, timestamp, userId, note}]
    status_history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    ordered_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ordered_at: Mapped[datetime | None] = mapped_column(nullable=True)
    received_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    received_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    supplier: Mapped[Supplier] = relationship("Supplier", lazy="selectin")

    __table_args__ = (
        CheckConstraint("subtotal >= 0", name="ck_purchase_order_subtotal_non_negative"),
        CheckConstraint("tax_rate >= 0 AND tax_rate <= 1", name="ck_purchase_order_tax_rate_range"),
        CheckConstraint("total >= 0", name="ck_purchase_order_total_non_negative"),
    )

    def recalculate_totals(self) -> None:
        """Recompute item totals, tax and the credit due date."""
        items = []
        for item in self.items or []:
            item = dict(item)
            item["totalPrice"] = round(float(item["quantity"]) * float(item["unitPrice"]), 2)
            items.append(item)
        self.items = items
        self.subtotal = round(sum(item["totalPrice"] for item in items), 2)
        self.tax = round(self.subtotal * self.tax_rate, 2)
        self.total = round(self.subtotal + self.tax, 2)

        if self.payment_method == SupplierPaymentMethod.CREDIT and self.credit_days > 0:
            order_date = self.ordered_at or self.created_at or datetime.utcnow()
            self.payment_due_date = order_date + timedelta(days=self.credit_days)

    def record_status(self, status: PurchaseOrderStatus, user_id: str, note: str | None = None) -> None:
        """Change status and append the change to the history."""
        self.status = status
        self.status_history = list(self.status_history or []) + [{
            "status": status.value,
            "timestamp": datetime.utcnow().isoformat(),
            "userId": user_id,
            "note": note,
        }]

    def can_be_approved(self) -> bool:
        return self.status == PurchaseOrderStatus.PENDING and len(self.items or []) > 0

    def can_be_ordered(self) -> bool:
        return self.status == PurchaseOrderStatus.APPROVED

    def can_be_received(self) -> bool:
        return self.status == PurchaseOrderStatus.ORDERED

    def can_be_cancelled(self) -> bool:
        return self.status not in (PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED)

    def is_overdue(self, today: date) -> bool:
        return bool(
            self.expected_delivery_date
            and self.expected_delivery_date < today
            and self.status not in (PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED)
        )

    def days_until_delivery(self, today: date) -> int | None:
        if not self.expected_delivery_date:
            return None
        return (self.expected_delivery_date - today).days

    def delivery_status(self, today: date) -> str:
        if self.status == PurchaseOrderStatus.RECEIVED:
            return "delivered"
        if self.is_overdue(today):
            return "overdue"
        days = self.days_until_delivery(today)
        if days is None:
            return "unknown"
        if days <= 0:
            return "due"
        if days <= 3:
            return "soon"
        return "scheduled"

    def __repr__(self) -> str:
        return f"<PurchaseOrder(purchase_order_id='{self.purchase_order_id}', status='{self.status}', total={self.total})>"
