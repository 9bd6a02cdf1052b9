"""Reservation and availability schemas."""

from datetime import date, datetime
from typing import Dict, List, Optional, Union
from uuid import UUID

from pydantic import Field, field_validator

from ..models.reservation import PaymentStatus, ReservationPaymentMethod, ReservationStatus
from .common import EMAIL_PATTERN, TIME_PATTERN, CamelModel, naive_utc


class CustomerInfo(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=40)
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=255)


class ChildInfo(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    age: int = Field(..., ge=1, le=18)


class NamedPrice(CamelModel):
    name: str
    price: float = Field(..., ge=0)


class ThemePackageChoice(CamelModel):
    name: str


class CreateReservationRequest(CamelModel):
    """
    Request schema for creating a reservation.

    ``food_extras`` accepts ``"name-price"`` strings or ``{name, price}``
    objects. ``selected_theme_package`` accepts ``"name-price"`` strings or
    ``{name}`` objects.
    """

    package_id: UUID
    event_date: date
    event_time: str = Field(..., pattern=TIME_PATTERN)
    food_option_id: Optional[UUID] = None
    food_extras: List[Union[str, NamedPrice]] = Field(default_factory=list)
    extra_services: List[UUID] = Field(default_factory=list)
    event_theme_id: Optional[UUID] = None
    selected_theme_package: Optional[Union[str, ThemePackageChoice]] = None
    selected_theme: Optional[str] = None
    customer: CustomerInfo
    child: ChildInfo
    special_comments: Optional[str] = Field(None, max_length=1000)
    coupon_code: Optional[str] = Field(None, max_length=20)


class UpdateReservationRequest(CamelModel):
    status: Optional[str] = None
    special_comments: Optional[str] = Field(None, max_length=1000)
    event_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    payment_notes: Optional[str] = None


class PaymentStatusRequest(CamelModel):
    payment_status: str
    amount_paid: Optional[float] = Field(None, ge=0)
    payment_method: Optional[ReservationPaymentMethod] = None
    payment_date: Optional[datetime] = None
    payment_notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("payment_date")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(v)


class PricingBreakdown(CamelModel):
    package_price: float = 0
    food_price: float = 0
    extras_price: float = 0
    theme_price: float = 0
    rest_day_fee: float = 0
    subtotal: float = 0
    discount: float = 0
    total: float = 0


class ReservationOut(CamelModel):
    id: UUID
    package: dict
    event_date: date
    event_time: str
    event_duration: Optional[float] = None
    event_block: Optional[dict] = None
    is_rest_day: bool
    rest_day_fee: float
    food_option: Optional[dict] = None
    extra_services: List[dict]
    event_theme: Optional[dict] = None
    customer: CustomerInfo
    child: ChildInfo
    special_comments: Optional[str] = None
    pricing: PricingBreakdown
    coupon_code: Optional[str] = None
    status: ReservationStatus
    payment_status: PaymentStatus
    payment_method: Optional[ReservationPaymentMethod] = None
    payment_date: Optional[datetime] = None
    payment_notes: Optional[str] = None
    amount_paid: float
    user_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ReservationSummary(CamelModel):
    id: UUID
    customer: CustomerInfo
    child: ChildInfo
    event_time: str
    event_duration: float
    status: ReservationStatus
    payment_status: PaymentStatus
    total_amount: float
    package_name: Optional[str] = None
    special_comments: Optional[str] = None
    created_at: datetime


class SlotOut(CamelModel):
    time: str
    end_time: str
    available: bool
    remaining_capacity: int
    total_capacity: int
    reservations: Optional[List[ReservationSummary]] = None


class BlockOut(CamelModel):
    name: str
    start_time: str
    end_time: str
    duration: float
    half_hour_break: bool = True
    slots: List[SlotOut]


class AvailableBlocksOut(CamelModel):
    date: date
    day_of_week: int
    is_rest_day: bool
    rest_day_info: Optional[dict] = None
    can_be_released: bool = True
    rest_day_fee: float = 0
    blocks: List[BlockOut]
    business_hours: Optional[dict] = None
    default_event_duration: Optional[float] = None


class LegacySlotOut(CamelModel):
    time: str
    available: bool
    remaining_capacity: int
    total_capacity: int


class AvailableSlotsOut(CamelModel):
    date: date
    is_rest_day: bool
    rest_day_fee: float
    default_event_duration: float
    slots: List[LegacySlotOut]


class DayAvailability(CamelModel):
    date: date
    available: bool
    total_slots: int
    available_slots: int
    is_rest_day: bool
    rest_day_fee: Optional[float] = None
    has_reservations: bool


class DayDetails(CamelModel):
    date: date
    total_slots: int
    available_slots: int
    reservations: List[ReservationSummary]
    total_revenue: float
    average_event_value: float
    is_rest_day: bool
    rest_day_fee: Optional[float] = None
    time_blocks: List[BlockOut]


AvailabilityMap = Dict[str, str]
