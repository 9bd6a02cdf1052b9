"""Supplier and supplier penalty model definitions."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, Boolean, CheckConstraint, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base
from .base import TimestampMixin, UUIDPrimaryKeyMixin


class SupplierStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class SupplierPaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT = "credit"
    TRANSFER = "transfer"
    CHECK = "check"


class PenaltyConcept(str, Enum):
    # Logistics
    LATE_DELIVERY = "LATE_DELIVERY"
    MISSING_DELIVERY = "MISSING_DELIVERY"
    INCOMPLETE_DELIVERY = "INCOMPLETE_DELIVERY"
    WRONG_DELIVERY_ADDRESS = "WRONG_DELIVERY_ADDRESS"
    DAMAGED_PACKAGING = "DAMAGED_PACKAGING"
    # Product quality
    QUALITY_ISSUES = "QUALITY_ISSUES"
    EXPIRED_PRODUCTS = "EXPIRED_PRODUCTS"
    WRONG_PRODUCTS = "WRONG_PRODUCTS"
    DEFECTIVE_PRODUCTS = "DEFECTIVE_PRODUCTS"
    CONTAMINATED_PRODUCTS = "CONTAMINATED_PRODUCTS"
    # Documentation
    MISSING_DOCUMENTATION = "MISSING_DOCUMENTATION"
    INCORRECT_INVOICING = "INCORRECT_INVOICING"
    PRICING_ERRORS = "PRICING_ERRORS"
    CERTIFICATE_ISSUES = "CERTIFICATE_ISSUES"
    # Service
    POOR_COMMUNICATION = "POOR_COMMUNICATION"
    UNRESPONSIVE_SERVICE = "UNRESPONSIVE_SERVICE"
    REPEATED_ERRORS = "REPEATED_ERRORS"
    POLICY_VIOLATIONS = "POLICY_VIOLATIONS"
    # Compliance
    REGULATORY_VIOLATIONS = "REGULATORY_VIOLATIONS"
    CONTRACT_BREACH = "CONTRACT_BREACH"
    SAFETY_VIOLATIONS = "SAFETY_VIOLATIONS"
    ENVIRONMENTAL_VIOLATIONS = "ENVIRONMENTAL_VIOLATIONS"
    OTHER = "OTHER"


class PenaltySeverity(str, Enum):
    MINOR = "MINOR"
    MODERATE = "MODERATE"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"


class PenaltyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    APPEALED = "APPEALED"
    REVERSED = "REVERSED"


# concept -> {label, category, defaultSeverity, defaultPoints}
PENALTY_CONCEPTS = {
    PenaltyConcept.LATE_DELIVERY: ("Envíos Tardíos", "Logística", PenaltySeverity.MODERATE, 8),
    PenaltyConcept.MISSING_DELIVERY: ("Entrega Faltante", "Logística", PenaltySeverity.MAJOR, 20),
    PenaltyConcept.INCOMPLETE_DELIVERY: ("Entrega Incompleta", "Logística", PenaltySeverity.MODERATE, 12),
    PenaltyConcept.DAMAGED_PACKAGING: ("Empaque Dañado", "Logística", PenaltySeverity.MINOR, 5),
    PenaltyConcept.QUALITY_ISSUES: ("Problemas de Calidad", "Calidad", PenaltySeverity.MAJOR, 25),
    PenaltyConcept.EXPIRED_PRODUCTS: ("Productos Vencidos", "Calidad", PenaltySeverity.CRITICAL, 35),
    PenaltyConcept.WRONG_PRODUCTS: ("Productos Incorrectos", "Calidad", PenaltySeverity.MODERATE, 10),
    PenaltyConcept.CONTAMINATED_PRODUCTS: ("Productos Contaminados", "Calidad", PenaltySeverity.CRITICAL, 40),
    PenaltyConcept.MISSING_DOCUMENTATION: ("Documentación Faltante", "Documentación", PenaltySeverity.MINOR, 6),
    PenaltyConcept.INCORRECT_INVOICING: ("Facturación Incorrecta", "Documentación", PenaltySeverity.MODERATE, 8),
    PenaltyConcept.CERTIFICATE_ISSUES: ("Problemas de Certificación", "Documentación", PenaltySeverity.MAJOR, 18),
    PenaltyConcept.POOR_COMMUNICATION: ("Comunicación Deficiente", "Servicio", PenaltySeverity.MINOR, 4),
    PenaltyConcept.UNRESPONSIVE_SERVICE: ("Servicio No Responsivo", "Servicio", PenaltySeverity.MODERATE, 12),
    PenaltyConcept.REPEATED_ERRORS: ("Errores Continuos", "Servicio", PenaltySeverity.MAJOR, 22),
    PenaltyConcept.CONTRACT_BREACH: ("Incumplimiento de Contrato", "Cumplimiento", PenaltySeverity.CRITICAL, 45),
    PenaltyConcept.SAFETY_VIOLATIONS: ("Violaciones de Seguridad", "Cumplimiento", PenaltySeverity.CRITICAL, 50),
    PenaltyConcept.OTHER: ("Otros Motivos", "Otros", PenaltySeverity.MINOR, 5),
}

# Days a penalty stays active, by severity
PENALTY_EXPIRY_DAYS = {
    PenaltySeverity.MINOR: 30,
    PenaltySeverity.MODERATE: 60,
    PenaltySeverity.MAJOR: 90,
    PenaltySeverity.CRITICAL: 180,
}


def severity_for_points(points: int) -> PenaltySeverity:
    if points <= 5:
        return PenaltySeverity.MINOR
    if points <= 15:
        return PenaltySeverity.MODERATE
    if points <= 30:
        return PenaltySeverity.MAJOR
    return PenaltySeverity.CRITICAL


class Supplier(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Vendor the venue buys from, optionally linked to a portal user."""

    __tablename__ = "suppliers"

    supplier_id: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    business_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    tax_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # {primaryContact, phone, email, position}
    contact_info: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # {street, city, state, zipCode, country}
    address: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    payment_method: Mapped[SupplierPaymentMethod] = mapped_column(
        String(20), nullable=False, default=SupplierPaymentMethod.CASH
    )
    credit_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")

    rating_quality: Mapped[float] = mapped_column(Float, nullable=False, default=3)
    rating_delivery: Mapped[float] = mapped_column(Float, nullable=False, default=3)
    rating_communication: Mapped[float] = mapped_column(Float, nullable=False, default=3)
    rating_pricing: Mapped[float] = mapped_column(Float, nullable=False, default=3)
    rating_overall: Mapped[float] = mapped_column(Float, nullable=False, default=3)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    penalty_score: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    status: Mapped[SupplierStatus] = mapped_column(String(20), nullable=False, default=SupplierStatus.ACTIVE)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    # Subject of the portal user's session token
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True, index=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    penalties: Mapped[list["SupplierPenalty"]] = relationship(
        "SupplierPenalty",
        back_populates="supplier",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("credit_days >= 0 AND credit_days <= 365", name="ck_supplier_credit_days_range"),
        CheckConstraint("rating_quality >= 1 AND rating_quality <= 5", name="ck_supplier_rating_quality_range"),
        CheckConstraint("rating_delivery >= 1 AND rating_delivery <= 5", name="ck_supplier_rating_delivery_range"),
        CheckConstraint(
            "rating_communication >= 1 AND rating_communication <= 5",
            name="ck_supplier_rating_communication_range",
        ),
        CheckConstraint("rating_pricing >= 1 AND rating_pricing <= 5", name="ck_supplier_rating_pricing_range"),
    )

    @property
    def payment_terms(self) -> dict:
        return {"method": self.payment_method, "creditDays": self.credit_days, "currency": self.currency}

    @property
    def rating(self) -> dict:
        return {
            "quality": self.rating_quality,
            "delivery": self.rating_delivery,
            "communication": self.rating_communication,
            "pricing": self.rating_pricing,
            "overall": self.rating_overall,
            "reviewCount": self.review_count,
        }

    def update_rating(self, quality: float, delivery: float, communication: float, pricing: float) -> None:
        """Store a new review; the overall score is the mean of the four, one decimal."""
        self.rating_quality = quality
        self.rating_delivery = delivery
        self.rating_communication = communication
        self.rating_pricing = pricing
        self.review_count = (self.review_count or 0) + 1
        self.rating_overall = round((quality + delivery + communication + pricing) / 4, 1)

    def activate(self) -> None:
        self.is_active = True
        self.status = SupplierStatus.ACTIVE

    def deactivate(self) -> None:
        self.is_active = False
        self.status = SupplierStatus.INACTIVE

    def suspend(self, reason: str | None = None) -> None:
        self.status = SupplierStatus.SUSPENDED
        if reason:
            self.notes = (self.notes or "") + f"\n[SUSPENDED: {datetime.utcnow().isoformat()}] {reason}"

    @property
    def full_address(self) -> str:
        parts = [self.address.get(key) for key in ("street", "city", "state", "zipCode", "country")]
        return ", ".join(part for part in parts if part)

    def __repr__(self) -> str:
        return f"<Supplier(supplier_id='{self.supplier_id}', code='{self.code}', name='{self.name}')>"


class SupplierPenalty(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Penalty points applied to a supplier for a failure."""

    __tablename__ = "supplier_penalties"

    supplier_id: Mapped[UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("suppliers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    supplier_name: Mapped[str] = mapped_column(String(200), nullable=False)
    concept: Mapped[PenaltyConcept] = mapped_column(String(40), nullable=False)
    severity: Mapped[PenaltySeverity] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    penalty_value: Mapped[int] = mapped_column(Integer, nullable=False)
    monetary_penalty: Mapped[float | None] = mapped_column(Float, nullable=True)
    applied_by: Mapped[str] = mapped_column(String(255), nullable=False)
    applied_at: Mapped[datetime] = mapped_column(nullable=False, default=datetime.utcnow, index=True)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    status: Mapped[PenaltyStatus] = mapped_column(
        String(20), nullable=False, default=PenaltyStatus.ACTIVE, index=True
    )
    evidence: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    supplier: Mapped[Supplier] = relationship("Supplier", back_populates="penalties")

    __table_args__ = (
        CheckConstraint("penalty_value >= 1 AND penalty_value <= 100", name="ck_penalty_value_range"),
    )

    def __repr__(self) -> str:
        return (
            f"<SupplierPenalty(id={self.id}, concept='{self.concept}', "
            f"points={self.penalty_value}, status='{self.status}')>"
        )
