"""Property-based tests for pricing, slots and unit conversion."""

from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from hypothesis import assume, given
from hypothesis import strategies as st

from tramboory.models.catalog import CouponScope, DiscountType
from tramboory.services.availability import format_minutes, generate_block_slots, overlaps, to_minutes
from tramboory.services.pricing import compute_totals, coupon_discount, day_of_week, price_tier, update_coupon_analytics
from tramboory.services.unit_converter import convert

money = st.floats(min_value=0, max_value=100_000, allow_nan=False, allow_infinity=False)
dates = st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 12, 31))
clock = st.integers(min_value=0, max_value=23 * 60 + 59).map(format_minutes)


@given(package=money, food=money, extras=money, theme=money, fee=money, discount=money)
def test_totals_are_consistent(package, food, extras, theme, fee, discount):
    totals = compute_totals(package, food, extras, theme, fee, discount)

    assert totals["subtotal"] == pytest.approx(package + food + extras + theme, abs=0.02)
    assert 0 <= totals["discount"] <= totals["subtotal"]
    assert totals["total"] >= 0
    assert totals["total"] == pytest.approx(totals["subtotal"] + totals["restDayFee"] - totals["discount"], abs=0.02)


@given(value=dates)
def test_day_of_week_counts_from_sunday(value):
    dow = day_of_week(value)
    assert dow == value.isoweekday() % 7
    assert day_of_week(value + timedelta(days=1)) == (dow + 1) % 7


@given(value=dates)
def test_sunday_is_the_only_holiday(value):
    assert (price_tier(value) == "holiday") == (value.isoweekday() == 7)


@given(
    start=st.integers(min_value=0, max_value=20 * 60),
    length=st.integers(min_value=0, max_value=12 * 60),
    duration=st.sampled_from([0.5, 1, 1.5, 2, 3, 3.5, 4]),
    half_hour_break=st.booleans(),
)
def test_block_slots_fit_inside_block(start, length, duration, half_hour_break):
    end = min(start + length, 23 * 60 + 59)
    slots = generate_block_slots(format_minutes(start), format_minutes(end), duration, half_hour_break)

    step = int(duration * 60) + (30 if half_hour_break else 0)
    for slot in slots:
        assert to_minutes(slot["time"]) >= start
        assert to_minutes(slot["endTime"]) <= end
        assert to_minutes(slot["endTime"]) - to_minutes(slot["time"]) == int(duration * 60)
    for earlier, later in zip(slots, slots[1:]):
        assert to_minutes(later["time"]) - to_minutes(earlier["time"]) == step
        assert not overlaps(earlier["time"], earlier["endTime"], later["time"], later["endTime"])

    # no room for one more slot
    next_start = start + step * len(slots)
    assert next_start + int(duration * 60) > end


@given(a=clock, b=clock, c=clock, d=clock)
def test_overlap_is_symmetric(a, b, c, d):
    assert overlaps(a, b, c, d) == overlaps(c, d, a, b)


@given(
    quantity=st.floats(min_value=0.001, max_value=10_000, allow_nan=False),
    factor=st.floats(min_value=0.1, max_value=1000, allow_nan=False),
)
def test_product_units_round_trip(quantity, factor):
    units = [{"code": "caja", "conversionFactor": factor}]
    in_base = convert(quantity, "caja", "l", "l", units)
    assume(in_base > 0)
    back = convert(in_base, "l", "caja", "l", units)
    assert back == pytest.approx(quantity, rel=1e-3, abs=1e-5)


@given(
    amount=money,
    percentage=st.floats(min_value=1, max_value=100, allow_nan=False),
    fixed=money,
)
def test_discount_never_exceeds_applicable_amount(amount, percentage, fixed):
    pricing = {"subtotal": amount}
    for discount_type, value in ((DiscountType.PERCENTAGE, percentage), (DiscountType.FIXED_AMOUNT, fixed)):
        coupon = SimpleNamespace(
            applicable_to=CouponScope.TOTAL,
            discount_type=discount_type,
            discount_value=value,
            free_service_id=None,
        )
        assert 0 <= coupon_discount(coupon, pricing) <= round(amount, 2) + 0.01


@given(orders=st.lists(st.tuples(money, money), min_size=1, max_size=20))
def test_coupon_analytics_running_mean(orders):
    analytics = None
    for discount, order_value in orders:
        analytics = update_coupon_analytics(analytics, discount, order_value)

    values = [order_value for _, order_value in orders]
    assert analytics["totalUsage"] == len(orders)
    assert analytics["totalDiscountGiven"] == pytest.approx(sum(d for d, _ in orders), abs=0.01 * len(orders))
    assert min(values) - 0.01 * len(orders) <= analytics["avgOrderValue"] <= max(values) + 0.01 * len(orders)
