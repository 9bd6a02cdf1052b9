"""Unit tests for reservation pricing."""

from datetime import date, datetime, timedelta
from types import SimpleNamespace

from tramboory.models.catalog import CouponScope, DiscountType
from tramboory.services.pricing import (
    compute_totals,
    coupon_discount,
    coupon_rejection,
    day_of_week,
    find_theme_package,
    package_price_for,
    parse_food_extra,
    parse_food_extras,
    price_tier,
    rest_day_fee_for,
    theme_package_name,
    update_coupon_analytics,
)

SUNDAY = date(2024, 6, 2)
MONDAY = date(2024, 6, 3)
TUESDAY = date(2024, 6, 4)
FRIDAY = date(2024, 6, 7)


def make_coupon(**overrides):
    now = datetime.utcnow()
    values = {
        "is_active": True,
        "valid_from": now - timedelta(days=1),
        "valid_until": now + timedelta(days=30),
        "max_uses": None,
        "used_count": 0,
        "valid_days": [],
        "valid_time_from": None,
        "valid_time_to": None,
        "min_order_amount": 0,
        "min_guests": 0,
        "allowed_customer_emails": [],
        "excluded_customer_emails": [],
        "applicable_to": CouponScope.TOTAL,
        "discount_type": DiscountType.PERCENTAGE,
        "discount_value": 10,
        "free_service_id": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_day_of_week_counts_from_sunday():
    assert day_of_week(SUNDAY) == 0
    assert day_of_week(MONDAY) == 1
    assert day_of_week(FRIDAY) == 5


def test_price_tier_by_weekday():
    assert price_tier(MONDAY) == "weekday"
    assert price_tier(TUESDAY) == "weekday"
    assert price_tier(FRIDAY) == "weekend"
    assert price_tier(date(2024, 6, 8)) == "weekend"
    assert price_tier(SUNDAY) == "holiday"


def test_package_price_for_uses_tier():
    pricing = {"weekday": 5000, "weekend": 6500, "holiday": 7000}
    assert package_price_for(pricing, MONDAY) == 5000.0
    assert package_price_for(pricing, FRIDAY) == 6500.0
    assert package_price_for(pricing, SUNDAY) == 7000.0


def test_rest_day_fee_for():
    rest_days = [{"day": 2, "name": "Martes", "fee": 1500, "canBeReleased": True}]
    assert rest_day_fee_for(rest_days, TUESDAY) == (True, 1500.0)
    assert rest_day_fee_for(rest_days, MONDAY) == (False, 0.0)


def test_parse_food_extra_string_uses_last_dash():
    assert parse_food_extra("Papas-gajo-45") == {"name": "Papas-gajo", "price": 45.0}
    assert parse_food_extra("Nachos") is None
    assert parse_food_extra("Nachos-gratis") is None


def test_parse_food_extra_object():
    assert parse_food_extra({"name": "Guacamole", "price": "30"}) == {"name": "Guacamole", "price": 30.0}
    assert parse_food_extra({"name": "", "price": 30}) is None
    assert parse_food_extra({"name": "Guacamole"}) is None


def test_parse_food_extras_drops_invalid_entries():
    extras = parse_food_extras(["Papas-45", "invalido", {"name": "Salsa", "price": 10}])
    assert extras == [{"name": "Papas", "price": 45.0}, {"name": "Salsa", "price": 10.0}]


def test_theme_package_lookup():
    packages = [{"name": "Básico", "pieces": 10, "price": 800}, {"name": "Premium", "pieces": 25, "price": 1500}]
    assert theme_package_name("Premium-1500") == "Premium"
    assert theme_package_name({"name": "Básico"}) == "Básico"
    assert find_theme_package(packages, "Premium-1500")["price"] == 1500
    assert find_theme_package(packages, "Inexistente") is None
    assert find_theme_package(packages, None) is None


def test_compute_totals_adds_rest_day_fee_after_subtotal():
    totals = compute_totals(5000, food_price=800, extras_price=300, theme_price=1200, rest_day_fee=1500)
    assert totals["subtotal"] == 7300
    assert totals["total"] == 8800
    assert totals["discount"] == 0


def test_compute_totals_caps_discount_at_subtotal():
    totals = compute_totals(1000, discount=2500)
    assert totals["discount"] == 1000
    assert totals["total"] == 0


def test_coupon_rejection_accepts_valid_coupon():
    assert coupon_rejection(make_coupon(), MONDAY, "14:00", subtotal=5000) is None


def test_coupon_rejection_reasons():
    assert coupon_rejection(make_coupon(is_active=False), MONDAY, "14:00", 5000) == "Cupón expirado o inactivo"
    assert coupon_rejection(make_coupon(max_uses=3, used_count=3), MONDAY, "14:00", 5000) == "Cupón agotado"
    assert coupon_rejection(make_coupon(valid_days=[5, 6]), MONDAY, "14:00", 5000) == "Cupón no válido para este día"
    assert (
        coupon_rejection(make_coupon(valid_time_from="16:00", valid_time_to="18:00"), MONDAY, "14:00", 5000)
        == "Cupón no válido para este horario"
    )
    assert coupon_rejection(make_coupon(min_order_amount=6000), MONDAY, "14:00", 5000) == "Monto mínimo requerido: $6000"
    assert (
        coupon_rejection(make_coupon(min_guests=80), MONDAY, "14:00", 5000, guest_count=60)
        == "Mínimo 80 invitados requeridos"
    )


def test_coupon_rejection_customer_lists():
    allowed = make_coupon(allowed_customer_emails=["vip@example.com"])
    assert coupon_rejection(allowed, MONDAY, "14:00", 5000, customer_email="VIP@example.com") is None
    assert (
        coupon_rejection(allowed, MONDAY, "14:00", 5000, customer_email="otro@example.com")
        == "Cupón no disponible para este cliente"
    )
    excluded = make_coupon(excluded_customer_emails=["malo@example.com"])
    assert (
        coupon_rejection(excluded, MONDAY, "14:00", 5000, customer_email="malo@example.com")
        == "Cupón no disponible para este cliente"
    )


def test_coupon_discount_percentage_of_scope():
    pricing = compute_totals(5000, food_price=1000, extras_price=500)
    coupon = make_coupon(applicable_to=CouponScope.PACKAGE, discount_value=20)
    assert coupon_discount(coupon, pricing) == 1000.0

    coupon = make_coupon(applicable_to=CouponScope.TOTAL, discount_value=10)
    assert coupon_discount(coupon, pricing) == 650.0


def test_coupon_discount_fixed_amount_capped():
    pricing = compute_totals(5000, food_price=300)
    coupon = make_coupon(
        applicable_to=CouponScope.FOOD,
        discount_type=DiscountType.FIXED_AMOUNT,
        discount_value=500,
    )
    assert coupon_discount(coupon, pricing) == 300.0


def test_coupon_discount_free_service():
    services = [{"id": "svc-1", "name": "Piñata", "price": 450, "quantity": 1}]
    pricing = compute_totals(5000, extras_price=450)
    coupon = make_coupon(discount_type=DiscountType.FREE_SERVICE, free_service_id="svc-1")
    assert coupon_discount(coupon, pricing, services) == 450.0

    coupon = make_coupon(discount_type=DiscountType.FREE_SERVICE, free_service_id="svc-2")
    assert coupon_discount(coupon, pricing, services) == 0.0


def test_update_coupon_analytics_running_mean():
    analytics = update_coupon_analytics(None, discount=100, order_value=1000)
    analytics = update_coupon_analytics(analytics, discount=50, order_value=2000)
    assert analytics == {"totalUsage": 2, "totalDiscountGiven": 150, "avgOrderValue": 1500}
