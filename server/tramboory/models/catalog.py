"""Sellable catalogue: packages, themes, food, extras, thematics and coupons."""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, CheckConstraint, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .base import TimestampMixin, UUIDPrimaryKeyMixin


class FoodCategory(str, Enum):
    MAIN = "main"
    APPETIZER = "appetizer"
    DESSERT = "dessert"
    BEVERAGE = "beverage"


class ExtraServiceCategory(str, Enum):
    DECORATION = "decoration"
    ENTERTAINMENT = "entertainment"
    CATERING = "catering"
    PHOTOGRAPHY = "photography"
    OTHER = "other"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SERVICE = "free_service"


class CouponScope(str, Enum):
    TOTAL = "total"
    PACKAGE = "package"
    FOOD = "food"
    EXTRAS = "extras"
    SPECIFIC_SERVICE = "specific_service"


class Package(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Party package with day-of-week pricing."""

    __tablename__ = "packages"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    weekday_price: Mapped[float] = mapped_column(Float, nullable=False)
    weekend_price: Mapped[float] = mapped_column(Float, nullable=False)
    holiday_price: Mapped[float] = mapped_column(Float, nullable=False)
    duration: Mapped[float] = mapped_column(Float, nullable=False, default=4)
    max_guests: Mapped[int] = mapped_column(Integer, nullable=False)
    features: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        CheckConstraint("weekday_price >= 0", name="ck_package_weekday_price_non_negative"),
        CheckConstraint("weekend_price >= 0", name="ck_package_weekend_price_non_negative"),
        CheckConstraint("holiday_price >= 0", name="ck_package_holiday_price_non_negative"),
        CheckConstraint("duration >= 1 AND duration <= 24", name="ck_package_duration_range"),
        CheckConstraint("max_guests >= 1", name="ck_package_max_guests_positive"),
    )

    @property
    def pricing(self) -> dict:
        return {
            "weekday": self.weekday_price,
            "weekend": self.weekend_price,
            "holiday": self.holiday_price,
        }

    def __repr__(self) -> str:
        return f"<Package(id={self.id}, name='{self.name}')>"


class EventTheme(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Decoration theme sold in priced packages (e.g. by number of pieces)."""

    __tablename__ = "event_themes"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # [{name, pieces, price, features}]
    packages: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    # [{name, additionalCost, description}]
    variations: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    themes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    def __repr__(self) -> str:
        return f"<EventTheme(id={self.id}, name='{self.name}')>"


class FoodOption(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Menu option with adult and kids dishes and paid upgrades."""

    __tablename__ = "food_options"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    base_price: Mapped[float] = mapped_column(Float, nullable=False)
    category: Mapped[FoodCategory] = mapped_column(String(20), nullable=False, default=FoodCategory.MAIN)
    adult_dishes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    kids_dishes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    # [{fromDish, toDish, additionalPrice, category}]
    upgrades: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    main_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="ck_food_option_base_price_non_negative"),
        CheckConstraint(
            "category IN ('main', 'appetizer', 'dessert', 'beverage')",
            name="ck_food_option_category_valid",
        ),
    )

    def __repr__(self) -> str:
        return f"<FoodOption(id={self.id}, name='{self.name}')>"


class ExtraService(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Add-on service priced per unit."""

    __tablename__ = "extra_services"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    category: Mapped[ExtraServiceCategory] = mapped_column(
        String(20), nullable=False, default=ExtraServiceCategory.OTHER
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_extra_service_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<ExtraService(id={self.id}, name='{self.name}', price={self.price})>"


class Thematic(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Themed party showcase page."""

    __tablename__ = "thematics"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str] = mapped_column(String(220), nullable=False, unique=True, index=True)
    cover_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Thematic(id={self.id}, slug='{self.slug}')>"


class Coupon(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Discount coupon with date, day, time, amount and customer restrictions."""

    __tablename__ = "coupons"

    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    discount_type: Mapped[DiscountType] = mapped_column(String(20), nullable=False)
    discount_value: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    free_service_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    applicable_to: Mapped[CouponScope] = mapped_column(String(20), nullable=False, default=CouponScope.TOTAL)

    max_uses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    used_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    valid_from: Mapped[datetime] = mapped_column(nullable=False)
    valid_until: Mapped[datetime] = mapped_column(nullable=False)
    valid_days: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    valid_time_from: Mapped[str | None] = mapped_column(String(5), nullable=True)
    valid_time_to: Mapped[str | None] = mapped_column(String(5), nullable=True)

    min_order_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    min_guests: Mapped[int | None] = mapped_column(Integer, nullable=True)

    new_customers_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    allowed_customer_emails: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    excluded_customer_emails: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # {totalUsage, totalDiscountGiven, avgOrderValue}
    analytics: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint("discount_value >= 0", name="ck_coupon_discount_non_negative"),
        CheckConstraint("used_count >= 0", name="ck_coupon_used_count_non_negative"),
        CheckConstraint("length(code) >= 3", name="ck_coupon_code_min_length"),
    )

    def __repr__(self) -> str:
        return f"<Coupon(code='{self.code}', type='{self.discount_type}', value={self.discount_value})>"
