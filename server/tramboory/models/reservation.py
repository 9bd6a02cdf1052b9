"""Reservation model definition."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, Boolean, CheckConstraint, Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .base import TimestampMixin, UUIDPrimaryKeyMixin


class ReservationStatus(str, Enum):
    """Reservation status enumeration."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""
    PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"
    OVERDUE = "overdue"


class ReservationPaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    OTHER = "other"


class Reservation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A party booked for a date and time.

    Catalogue choices (package, food, extras, theme) are stored as snapshots
    so later catalogue edits do not change what the customer booked.
    """

    __tablename__ = "reservations"

    package_id: Mapped[UUID | None] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("packages.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # {id, name, maxGuests, basePrice}
    package: Mapped[dict] = mapped_column(JSON, nullable=False)

    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    event_time: Mapped[str] = mapped_column(String(5), nullable=False)
    event_duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    # {name, startTime, endTime}
    event_block: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_rest_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rest_day_fee: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # {id, name, basePrice, selectedExtras: [{name, price}]}
    food_option: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    # [{id, name, price, quantity}]
    extra_services: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    # {id, name, selectedPackage: {name, pieces, price}, selectedTheme}
    event_theme: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(40), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    child_name: Mapped[str] = mapped_column(String(200), nullable=False)
    child_age: Mapped[int] = mapped_column(Integer, nullable=False)
    special_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    # {packagePrice, foodPrice, extrasPrice, themePrice, restDayFee, subtotal, discount, total}
    pricing: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    coupon_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    status: Mapped[ReservationStatus] = mapped_column(
        String(20), nullable=False, default=ReservationStatus.PENDING, index=True
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.PENDING
    )
    payment_method: Mapped[ReservationPaymentMethod | None] = mapped_column(String(20), nullable=True)
    payment_date: Mapped[datetime | None] = mapped_column(nullable=True)
    payment_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    amount_paid: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # Subject of the session token that created the reservation
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    __table_args__ = (
        CheckConstraint("child_age >= 1 AND child_age <= 18", name="ck_reservation_child_age_range"),
        CheckConstraint("amount_paid >= 0", name="ck_reservation_amount_paid_non_negative"),
        CheckConstraint("rest_day_fee >= 0", name="ck_reservation_rest_day_fee_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed')",
            name="ck_reservation_status_valid",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'partial', 'overdue')",
            name="ck_reservation_payment_status_valid",
        ),
    )

    @property
    def customer(self) -> dict:
        return {"name": self.customer_name, "phone": self.customer_phone, "email": self.customer_email}

    @property
    def child(self) -> dict:
        return {"name": self.child_name, "age": self.child_age}

    @property
    def total(self) -> float:
        return float((self.pricing or {}).get("total", 0) or 0)

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, date={self.event_date}, time='{self.event_time}', "
            f"status='{self.status}')>"
        )
