"""
Reservation pricing.

Pure functions: nothing here touches the database.
Weekdays count from 0 = Sunday to 6 = Saturday.
"""

from datetime import date, datetime
from typing import Any, Iterable, Optional, Union

from ..models.catalog import CouponScope, DiscountType


def day_of_week(value: date) -> int:
    """Weekday number with Sunday as 0."""
    return (value.weekday() + 1) % 7


def price_tier(value: date) -> str:
    """Monday to Thursday is ``weekday``, Friday and Saturday ``weekend``, Sunday ``holiday``."""
    dow = day_of_week(value)
    if 1 <= dow <= 4:
        return "weekday"
    if dow in (5, 6):
        return "weekend"
    return "holiday"


def package_price_for(pricing: dict, value: date) -> float:
    return float(pricing.get(price_tier(value)) or 0)


def rest_day_fee_for(rest_days: Iterable[dict], value: date) -> tuple[bool, float]:
    """Return ``(is_rest_day, fee)`` for the event date."""
    dow = day_of_week(value)
    for rest_day in rest_days or []:
        if rest_day.get("day") == dow:
            return True, float(rest_day.get("fee") or 0)
    return False, 0.0


def parse_food_extra(extra: Union[str, dict, Any]) -> Optional[dict]:
    """
    Normalise a food extra to ``{name, price}``.

    Strings use the ``"name-price"`` form, where the price is the text after
    the last dash. Entries that cannot be parsed give ``None``.
    """
    if isinstance(extra, str):
        parts = extra.split("-")
        if len(parts) < 2:
            return None
        try:
            price = float(parts[-1])
        except ValueError:
            return None
        return {"name": "-".join(parts[:-1]), "price": price}

    if not isinstance(extra, dict):
        extra = extra.model_dump() if hasattr(extra, "model_dump") else None
    if not extra or not extra.get("name") or extra.get("price") is None:
        return None
    try:
        return {"name": extra["name"], "price": float(extra["price"])}
    except (TypeError, ValueError):
        return None


def parse_food_extras(extras: Iterable[Any]) -> list[dict]:
    parsed = (parse_food_extra(extra) for extra in extras or [])
    return [extra for extra in parsed if extra is not None]


def theme_package_name(selection: Union[str, dict, Any, None]) -> Optional[str]:
    """Strings name the package before the first dash; objects carry ``name``."""
    if selection is None:
        return None
    if isinstance(selection, str):
        return selection.split("-")[0]
    if isinstance(selection, dict):
        return selection.get("name")
    return getattr(selection, "name", None)


def find_theme_package(packages: Iterable[dict], selection: Any) -> Optional[dict]:
    name = theme_package_name(selection)
    if not name:
        return None
    for package in packages or []:
        if package.get("name") == name:
            return package
    return None


def compute_totals(
    package_price: float,
    food_price: float = 0,
    extras_price: float = 0,
    theme_price: float = 0,
    rest_day_fee: float = 0,
    discount: float = 0,
) -> dict:
    """
    Build the pricing breakdown stored on a reservation.

    ``subtotal`` is the sum of the catalogue prices and ``total`` adds the
    rest day fee and takes off any coupon discount (never below zero).
    """
    subtotal = round(package_price + food_price + extras_price + theme_price, 2)
    discount = round(min(max(discount, 0), subtotal), 2)
    total = round(max(subtotal + rest_day_fee - discount, 0), 2)
    return {
        "packagePrice": round(package_price, 2),
        "foodPrice": round(food_price, 2),
        "extrasPrice": round(extras_price, 2),
        "themePrice": round(theme_price, 2),
        "restDayFee": round(rest_day_fee, 2),
        "subtotal": subtotal,
        "discount": discount,
        "total": total,
    }


def coupon_rejection(
    coupon,
    event_date: date,
    event_time: Optional[str],
    subtotal: float,
    customer_email: Optional[str] = None,
    guest_count: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Return why ``coupon`` cannot be used for the booking, or ``None`` when it can."""
    now = now or datetime.utcnow()

    if not coupon.is_active or now < coupon.valid_from or now > coupon.valid_until:
        return "Cupón expirado o inactivo"

    if coupon.max_uses and coupon.used_count >= coupon.max_uses:
        return "Cupón agotado"

    if coupon.valid_days and day_of_week(event_date) not in coupon.valid_days:
        return "Cupón no válido para este día"

    if coupon.valid_time_from and coupon.valid_time_to and event_time:
        if event_time < coupon.valid_time_from or event_time > coupon.valid_time_to:
            return "Cupón no válido para este horario"

    if coupon.min_order_amount and subtotal < coupon.min_order_amount:
        return f"Monto mínimo requerido: ${coupon.min_order_amount:g}"

    if coupon.min_guests and (guest_count or 0) < coupon.min_guests:
        return f"Mínimo {coupon.min_guests} invitados requeridos"

    email = (customer_email or "").lower()
    if coupon.allowed_customer_emails and email not in coupon.allowed_customer_emails:
        return "Cupón no disponible para este cliente"
    if email and email in (coupon.excluded_customer_emails or []):
        return "Cupón no disponible para este cliente"

    return None


def applicable_amount(coupon, pricing: dict, extra_services: Iterable[dict] = ()) -> float:
    """Part of the booking the coupon's scope applies to."""
    scope = coupon.applicable_to
    if scope == CouponScope.PACKAGE:
        return float(pricing.get("packagePrice", 0))
    if scope == CouponScope.FOOD:
        return float(pricing.get("foodPrice", 0))
    if scope == CouponScope.EXTRAS:
        return float(pricing.get("extrasPrice", 0))
    if scope == CouponScope.SPECIFIC_SERVICE:
        return sum(
            float(service.get("price", 0)) * int(service.get("quantity", 1))
            for service in extra_services
            if str(service.get("id")) == str(coupon.free_service_id)
        )
    return float(pricing.get("subtotal", 0))


def coupon_discount(coupon, pricing: dict, extra_services: Iterable[dict] = ()) -> float:
    """
    Discount granted by a valid coupon.

    Percentages apply to the applicable amount; fixed amounts and free
    services are capped at it.
    """
    amount = applicable_amount(coupon, pricing, extra_services)
    if coupon.discount_type == DiscountType.PERCENTAGE:
        return round(amount * coupon.discount_value / 100, 2)
    if coupon.discount_type == DiscountType.FIXED_AMOUNT:
        return round(min(coupon.discount_value, amount), 2)
    if coupon.discount_type == DiscountType.FREE_SERVICE:
        service_total = sum(
            float(service.get("price", 0)) * int(service.get("quantity", 1))
            for service in extra_services
            if str(service.get("id")) == str(coupon.free_service_id)
        )
        return round(min(service_total, float(pricing.get("subtotal", 0))), 2)
    return 0.0


def update_coupon_analytics(analytics: Optional[dict], discount: float, order_value: float) -> dict:
    """Return the coupon analytics after one more use (running mean of order value)."""
    analytics = dict(analytics or {})
    usage = int(analytics.get("totalUsage", 0)) + 1
    previous_avg = float(analytics.get("avgOrderValue", 0))
    analytics["totalUsage"] = usage
    analytics["totalDiscountGiven"] = round(float(analytics.get("totalDiscountGiven", 0)) + discount, 2)
    analytics["avgOrderValue"] = round((previous_avg * (usage - 1) + order_value) / usage, 2)
    return analytics
