"""Catalogue schemas: packages, event themes, food options, extras, thematics and coupons."""

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from ..models.catalog import CouponScope, DiscountType, ExtraServiceCategory, FoodCategory
from .common import TIME_PATTERN, CamelModel, naive_utc


class PackagePricing(CamelModel):
    weekday: float = Field(..., ge=0, description="Monday to Thursday price")
    weekend: float = Field(..., ge=0, description="Friday and Saturday price")
    holiday: float = Field(..., ge=0, description="Sunday and holiday price")


class PackageCreate(CamelModel):
    """Request schema for creating a package."""

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    pricing: PackagePricing
    duration: float = Field(4, ge=1, le=24, description="Duration in hours")
    max_guests: int = Field(..., ge=1)
    features: List[str] = Field(default_factory=list)
    is_active: bool = True


class PackageUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    pricing: Optional[PackagePricing] = None
    duration: Optional[float] = Field(None, ge=1, le=24)
    max_guests: Optional[int] = Field(None, ge=1)
    features: Optional[List[str]] = None
    is_active: Optional[bool] = None


class PackageOut(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    pricing: PackagePricing
    duration: float
    max_guests: int
    features: List[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ThemePackage(CamelModel):
    name: str = Field(..., min_length=1)
    pieces: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    features: List[str] = Field(default_factory=list)


class ThemeVariation(CamelModel):
    name: str = Field(..., min_length=1)
    additional_cost: float = Field(0, ge=0)
    description: Optional[str] = None


class EventThemeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    packages: List[ThemePackage] = Field(default_factory=list)
    variations: List[ThemeVariation] = Field(default_factory=list)
    themes: List[str] = Field(default_factory=list)
    is_active: bool = True


class EventThemeUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    packages: Optional[List[ThemePackage]] = None
    variations: Optional[List[ThemeVariation]] = None
    themes: Optional[List[str]] = None
    is_active: Optional[bool] = None


class EventThemeOut(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    packages: List[dict]
    variations: List[dict]
    themes: List[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class FoodUpgrade(CamelModel):
    from_dish: str = Field(..., min_length=1)
    to_dish: str = Field(..., min_length=1)
    additional_price: float = Field(..., ge=0)
    category: Literal["adult", "kids"]


class FoodOptionCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    base_price: float = Field(..., ge=0)
    category: FoodCategory = FoodCategory.MAIN
    adult_dishes: List[str] = Field(default_factory=list)
    kids_dishes: List[str] = Field(default_factory=list)
    upgrades: List[FoodUpgrade] = Field(default_factory=list)
    main_image: Optional[str] = None
    is_active: bool = True


class FoodOptionUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    base_price: Optional[float] = Field(None, ge=0)
    category: Optional[FoodCategory] = None
    adult_dishes: Optional[List[str]] = None
    kids_dishes: Optional[List[str]] = None
    upgrades: Optional[List[FoodUpgrade]] = None
    main_image: Optional[str] = None
    is_active: Optional[bool] = None


class FoodOptionOut(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    base_price: float
    category: FoodCategory
    adult_dishes: List[str]
    kids_dishes: List[str]
    upgrades: List[dict]
    main_image: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ExtraServiceCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    price: float = Field(..., ge=0)
    category: ExtraServiceCategory = ExtraServiceCategory.OTHER
    is_active: bool = True


class ExtraServiceUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    price: Optional[float] = Field(None, ge=0)
    category: Optional[ExtraServiceCategory] = None
    is_active: Optional[bool] = None


class ExtraServiceOut(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    price: float
    category: ExtraServiceCategory
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ThematicCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    slug: Optional[str] = Field(None, pattern=r"^[a-z0-9-]+$", max_length=220)
    cover_image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    is_active: bool = True
    order: int = 0


class ThematicUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    slug: Optional[str] = Field(None, pattern=r"^[a-z0-9-]+$", max_length=220)
    cover_image: Optional[str] = None
    images: Optional[List[str]] = None
    is_active: Optional[bool] = None
    order: Optional[int] = None


class ThematicOut(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    slug: str
    cover_image: Optional[str] = None
    images: List[str]
    is_active: bool
    order: int
    created_at: datetime
    updated_at: datetime


class CouponBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    discount_type: DiscountType
    discount_value: float = Field(0, ge=0)
    free_service_id: Optional[str] = None
    applicable_to: CouponScope = CouponScope.TOTAL
    max_uses: Optional[int] = Field(None, ge=1)
    valid_from: datetime
    valid_until: datetime
    valid_days: List[int] = Field(default_factory=list)
    valid_time_from: Optional[str] = Field(None, pattern=TIME_PATTERN)
    valid_time_to: Optional[str] = Field(None, pattern=TIME_PATTERN)
    min_order_amount: Optional[float] = Field(None, ge=0)
    min_guests: Optional[int] = Field(None, ge=1)
    new_customers_only: bool = False
    allowed_customer_emails: List[str] = Field(default_factory=list)
    excluded_customer_emails: List[str] = Field(default_factory=list)
    is_active: bool = True
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return naive_utc(v)

    @field_validator("valid_days")
    @classmethod
    def validate_days(cls, v: List[int]) -> List[int]:
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Los días válidos deben estar entre 0 y 6")
        return sorted(set(v))

    @field_validator("allowed_customer_emails", "excluded_customer_emails")
    @classmethod
    def lower_emails(cls, v: List[str]) -> List[str]:
        return [email.strip().lower() for email in v if email.strip()]


class CouponCreate(CouponBase):
    code: str = Field(..., min_length=3, max_length=20)

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def validate_discount(self) -> "CouponCreate":
        if self.valid_until <= self.valid_from:
            raise ValueError("La fecha de fin debe ser posterior a la fecha de inicio")
        if self.discount_type == DiscountType.PERCENTAGE and not 0 < self.discount_value <= 100:
            raise ValueError("El valor del descuento debe ser entre 1-100 para porcentajes")
        if self.discount_type == DiscountType.FIXED_AMOUNT and self.discount_value <= 0:
            raise ValueError("El valor del descuento debe ser mayor a 0")
        if self.discount_type == DiscountType.FREE_SERVICE and not self.free_service_id:
            raise ValueError("Se requiere el servicio gratuito")
        return self


class CouponUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    discount_value: Optional[float] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    valid_days: Optional[List[int]] = None
    valid_time_from: Optional[str] = Field(None, pattern=TIME_PATTERN)
    valid_time_to: Optional[str] = Field(None, pattern=TIME_PATTERN)
    min_order_amount: Optional[float] = Field(None, ge=0)
    min_guests: Optional[int] = Field(None, ge=1)
    allowed_customer_emails: Optional[List[str]] = None
    excluded_customer_emails: Optional[List[str]] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(v)


class CouponOut(CamelModel):
    id: UUID
    code: str
    name: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: float
    free_service_id: Optional[str] = None
    applicable_to: CouponScope
    max_uses: Optional[int] = None
    used_count: int
    valid_from: datetime
    valid_until: datetime
    valid_days: List[int]
    valid_time_from: Optional[str] = None
    valid_time_to: Optional[str] = None
    min_order_amount: Optional[float] = None
    min_guests: Optional[int] = None
    new_customers_only: bool
    allowed_customer_emails: List[str]
    excluded_customer_emails: List[str]
    is_active: bool
    created_by: Optional[str] = None
    notes: Optional[str] = None
    analytics: dict
    created_at: datetime
    updated_at: datetime


class CouponValidateRequest(CamelModel):
    """Reservation details a coupon is checked against."""

    code: str = Field(..., min_length=1)
    event_date: date
    event_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    customer_email: str = ""
    guest_count: int = Field(0, ge=0)
    package_price: float = Field(0, ge=0)
    food_price: float = Field(0, ge=0)
    extras_price: float = Field(0, ge=0)
    subtotal: Optional[float] = Field(None, ge=0)


class CouponValidation(CamelModel):
    valid: bool
    reason: str
    code: str
    discount_amount: float = 0
    coupon: Optional[CouponOut] = None
