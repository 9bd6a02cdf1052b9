"""Supplier, penalty and purchase order schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from ..models.purchase_order import DEFAULT_TAX_RATE, PurchaseOrderStatus
from ..models.supplier import PenaltySeverity, PenaltyStatus, SupplierPaymentMethod, SupplierStatus
from .common import EMAIL_PATTERN, CamelModel, clean_tags, naive_utc


class ContactInfo(CamelModel):
    primary_contact: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=40)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN, max_length=255)
    position: Optional[str] = Field(None, max_length=100)


class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = "México"


class PaymentTerms(CamelModel):
    method: SupplierPaymentMethod = SupplierPaymentMethod.CASH
    credit_days: int = Field(0, ge=0, le=365)
    currency: str = Field("MXN", min_length=3, max_length=3)


class SupplierCreate(CamelModel):
    """Request schema for creating a supplier."""

    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50)
    business_name: Optional[str] = Field(None, max_length=200)
    tax_id: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = Field(None, max_length=2000)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    address: Address = Field(default_factory=Address)
    payment_terms: PaymentTerms = Field(default_factory=PaymentTerms)
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("tags")
    @classmethod
    def normalise_tags(cls, v: List[str]) -> List[str]:
        return clean_tags(v)


class SupplierUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    business_name: Optional[str] = Field(None, max_length=200)
    tax_id: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = Field(None, max_length=2000)
    contact_info: Optional[ContactInfo] = None
    address: Optional[Address] = None
    payment_terms: Optional[PaymentTerms] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = Field(None, max_length=2000)
    is_active: Optional[bool] = None


class RatingUpdate(CamelModel):
    quality: float = Field(..., ge=1, le=5)
    delivery: float = Field(..., ge=1, le=5)
    communication: float = Field(..., ge=1, le=5)
    pricing: float = Field(..., ge=1, le=5)


class SupplierLinkRequest(CamelModel):
    user_id: Optional[str] = Field(None, max_length=255)


class SupplierRating(CamelModel):
    quality: float
    delivery: float
    communication: float
    pricing: float
    overall: float
    review_count: int


class SupplierOut(CamelModel):
    id: UUID
    supplier_id: str
    name: str
    code: str
    business_name: Optional[str] = None
    tax_id: Optional[str] = None
    description: Optional[str] = None
    contact_info: dict
    address: dict
    payment_terms: PaymentTerms
    rating: SupplierRating
    penalty_score: float
    status: SupplierStatus
    is_active: bool
    user_id: Optional[str] = None
    tags: List[str]
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PenaltyCreate(CamelModel):
    """
    Request schema for applying a penalty.

    ``concept`` is validated against the concept catalogue by the service;
    points and severity default to the concept's values.
    """

    supplier_id: UUID
    concept: str
    description: str = Field(..., min_length=1, max_length=1000)
    penalty_value: Optional[float] = None
    severity: Optional[str] = None
    monetary_penalty: Optional[float] = Field(None, ge=0)
    evidence: List[str] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=2000)


class PenaltyUpdate(CamelModel):
    status: Optional[PenaltyStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(v)


class PenaltyOut(CamelModel):
    id: UUID
    supplier_id: UUID
    supplier_name: str
    concept: str
    severity: PenaltySeverity
    description: str
    penalty_value: int
    monetary_penalty: Optional[float] = None
    applied_by: str
    applied_at: datetime
    expires_at: Optional[datetime] = None
    status: PenaltyStatus
    evidence: List[str]
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PurchaseOrderItem(CamelModel):
    product_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=20)
    unit_price: float = Field(..., ge=0)
    total_price: Optional[float] = None
    notes: Optional[str] = None


class PurchaseOrderCreate(CamelModel):
    supplier_id: UUID
    items: List[PurchaseOrderItem] = Field(..., min_length=1)
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    subtotal: Optional[float] = Field(None, ge=0)
    tax_rate: float = Field(DEFAULT_TAX_RATE, ge=0, le=1)
    expected_delivery_date: Optional[date] = None
    delivery_location: Optional[str] = Field(None, max_length=100)
    payment_terms: Optional[PaymentTerms] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("status")
    @classmethod
    def initial_status(cls, v: PurchaseOrderStatus) -> PurchaseOrderStatus:
        if v not in (PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.PENDING):
            raise ValueError("Una orden nueva solo puede estar en DRAFT o PENDING")
        return v


class PurchaseOrderUpdate(CamelModel):
    items: Optional[List[PurchaseOrderItem]] = Field(None, min_length=1)
    tax_rate: Optional[float] = Field(None, ge=0, le=1)
    expected_delivery_date: Optional[date] = None
    delivery_location: Optional[str] = Field(None, max_length=100)
    payment_terms: Optional[PaymentTerms] = None
    notes: Optional[str] = Field(None, max_length=2000)


class TransitionRequest(CamelModel):
    note: Optional[str] = Field(None, max_length=1000)
    reason: Optional[str] = Field(None, max_length=1000)
    actual_delivery_date: Optional[date] = None


class SupplierOrderStatusRequest(CamelModel):
    status: PurchaseOrderStatus
    note: Optional[str] = Field(None, max_length=1000)


class PurchaseOrderOut(CamelModel):
    id: UUID
    purchase_order_id: str
    supplier_id: UUID
    supplier_name: str
    status: PurchaseOrderStatus
    items: List[dict]
    subtotal: float
    tax_rate: float
    tax: float
    total: float
    currency: str
    expected_delivery_date: Optional[date] = None
    actual_delivery_date: Optional[date] = None
    delivery_location: Optional[str] = None
    payment_method: SupplierPaymentMethod
    credit_days: int
    payment_due_date: Optional[datetime] = None
    notes: Optional[str] = None
    status_history: List[dict]
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    ordered_by: Optional[str] = None
    ordered_at: Optional[datetime] = None
    received_by: Optional[str] = None
    received_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    is_overdue: bool = False
    days_until_delivery: Optional[int] = None
    delivery_status: str = "unknown"
    created_at: datetime
    updated_at: datetime
