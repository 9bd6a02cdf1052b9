"""Finance ledger model definition."""

from datetime import date as date_type, datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, Boolean, CheckConstraint, Date, Float, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .base import TimestampMixin, UUIDPrimaryKeyMixin


class FinanceType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class FinanceCategory(str, Enum):
    RESERVATION = "reservation"
    OPERATIONAL = "operational"
    SALARY = "salary"
    OTHER = "other"


class FinanceStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FinancePaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    CHECK = "check"
    OTHER = "other"


class Finance(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Income or expense entry.

    Entries may be grouped: a child points at its parent through
    ``parent_id`` and counts towards the parent's total. Entries generated
    from reservations are flagged ``is_system_generated``.
    """

    __tablename__ = "finances"

    type: Mapped[FinanceType] = mapped_column(String(10), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    date: Mapped[datetime] = mapped_column(nullable=False, index=True)

    category: Mapped[FinanceCategory] = mapped_column(String(20), nullable=False, index=True)
    subcategory: Mapped[str | None] = mapped_column(String(100), nullable=True)

    reservation_id: Mapped[UUID | None] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("reservations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    reservation_customer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    reservation_event_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)

    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    payment_method: Mapped[FinancePaymentMethod | None] = mapped_column(String(20), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[FinanceStatus] = mapped_column(
        String(20), nullable=False, default=FinanceStatus.COMPLETED, index=True
    )
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    parent_id: Mapped[UUID | None] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("finances.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    is_system_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_editable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_finance_amount_non_negative"),
        CheckConstraint("type IN ('income', 'expense')", name="ck_finance_type_valid"),
        CheckConstraint(
            "category IN ('reservation', 'operational', 'salary', 'other')",
            name="ck_finance_category_valid",
        ),
        CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled')",
            name="ck_finance_status_valid",
        ),
        Index("ix_finances_type_date", "type", "date"),
        Index("ix_finances_category_date", "category", "date"),
    )

    @property
    def reservation(self) -> dict | None:
        if not self.reservation_id:
            return None
        return {
            "reservationId": str(self.reservation_id),
            "customerName": self.reservation_customer_name,
            "eventDate": self.reservation_event_date,
        }

    @property
    def signed_amount(self) -> float:
        """Amount as it affects a balance: income adds, expense subtracts."""
        return self.amount if self.type == FinanceType.INCOME else -self.amount

    def __repr__(self) -> str:
        return f"<Finance(id={self.id}, type='{self.type}', amount={self.amount}, category='{self.category}')>"
