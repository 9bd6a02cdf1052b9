"""Finance ledger schemas."""

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator

from ..models.finance import FinanceCategory, FinancePaymentMethod, FinanceStatus, FinanceType
from .common import CamelModel, clean_tags, naive_utc


class FinanceCreate(CamelModel):
    """
    Request schema for creating a finance entry.

    ``type`` and ``category`` are plain strings here; the service checks
    them so that clients get the ledger's own error messages.
    """

    type: str
    description: str = Field(..., min_length=1, max_length=500)
    amount: float
    date: Optional[datetime] = None
    category: str
    subcategory: Optional[str] = Field(None, max_length=100)
    reservation_id: Optional[UUID] = None
    tags: List[str] = Field(default_factory=list)
    payment_method: Optional[FinancePaymentMethod] = None
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=2000)
    status: FinanceStatus = FinanceStatus.COMPLETED
    parent_id: Optional[UUID] = None

    @field_validator("date")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(v)

    @field_validator("tags")
    @classmethod
    def normalise_tags(cls, v: List[str]) -> List[str]:
        return clean_tags(v)


class FinanceUpdate(CamelModel):
    type: Optional[str] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    amount: Optional[float] = None
    date: Optional[datetime] = None
    category: Optional[str] = None
    subcategory: Optional[str] = Field(None, max_length=100)
    reservation_id: Optional[UUID] = None
    tags: Optional[List[str]] = None
    payment_method: Optional[FinancePaymentMethod] = None
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=2000)
    status: Optional[FinanceStatus] = None

    @field_validator("date")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(v)

    @field_validator("tags")
    @classmethod
    def normalise_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else clean_tags(v)


class FinanceChildCreate(CamelModel):
    type: str
    description: str = Field(..., min_length=1, max_length=500)
    amount: float
    date: Optional[datetime] = None
    subcategory: Optional[str] = Field(None, max_length=100)
    tags: List[str] = Field(default_factory=list)
    payment_method: Optional[FinancePaymentMethod] = None
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=2000)
    status: FinanceStatus = FinanceStatus.COMPLETED

    @field_validator("date")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(v)

    @field_validator("tags")
    @classmethod
    def normalise_tags(cls, v: List[str]) -> List[str]:
        return clean_tags(v)


class ReservationLink(CamelModel):
    reservation_id: UUID
    customer_name: Optional[str] = None
    event_date: Optional[date] = None


class FinanceOut(CamelModel):
    id: UUID
    type: FinanceType
    description: str
    amount: float
    date: datetime
    category: FinanceCategory
    subcategory: Optional[str] = None
    reservation: Optional[ReservationLink] = None
    tags: List[str]
    payment_method: Optional[FinancePaymentMethod] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    status: FinanceStatus
    created_by: Optional[str] = None
    parent_id: Optional[UUID] = None
    is_system_generated: bool
    is_editable: bool
    created_at: datetime
    updated_at: datetime


class FinanceWithChildren(FinanceOut):
    children: List[FinanceOut] = Field(default_factory=list)
    total_with_children: float = 0


class TagAction(CamelModel):
    action: Optional[Literal["rename", "delete", "add", "remove"]] = None
    old_tag: Optional[str] = None
    new_tag: Optional[str] = None
    transaction_ids: Optional[List[UUID]] = None


class FromReservationsRequest(CamelModel):
    reservation_ids: List[UUID] = Field(default_factory=list)
    generate_type: Literal["income", "expense", "both"] = "income"
    overwrite: bool = False
    created_by: Optional[str] = None
