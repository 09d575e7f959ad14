"""
Property-based tests for date-range overlap and pricing.

Hypothesis generates arbitrary inclusive ranges; the invariants are the
symmetric overlap predicate and the cost arithmetic.
"""

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from leasing_kernel.domain.booking import DateRange, ranges_overlap
from leasing_kernel.domain.pricing import calculate_booking_cost, is_weekend, price_booking

BASE_DAY = date(2024, 1, 1)


@st.composite
def date_ranges(draw, max_offset: int = 400, max_length: int = 60) -> DateRange:
    start = BASE_DAY + timedelta(days=draw(st.integers(0, max_offset)))
    length = draw(st.integers(0, max_length))
    return DateRange(start, start + timedelta(days=length))


money = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("10000"), places=2,
    allow_nan=False, allow_infinity=False,
)
percentages = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("100"), places=2,
    allow_nan=False, allow_infinity=False,
)


@given(date_ranges(), date_ranges())
def test_overlap_is_symmetric(a, b):
    assert a.overlaps(b) == b.overlaps(a)


@given(date_ranges(), date_ranges())
def test_overlap_iff_shared_day(a, b):
    shared = set(a.each_day()) & set(b.each_day())
    assert ranges_overlap(a.start, a.end, b.start, b.end) == bool(shared)


@given(date_ranges())
def test_next_day_range_never_overlaps(a):
    after = DateRange(a.end + timedelta(days=1), a.end + timedelta(days=3))
    assert not a.overlaps(after)


@settings(max_examples=50)
@given(date_ranges(max_length=30), money, money)
def test_cost_is_weekday_and_weekend_days_at_their_rates(stay, weekday, weekend):
    cost = calculate_booking_cost(weekday, weekend, stay.start, stay.end)

    weekend_days = sum(1 for d in stay.each_day() if is_weekend(d))
    assert cost.weekend_count == weekend_days
    assert cost.day_count == stay.days
    assert cost.subtotal == weekday * cost.weekday_count + weekend * weekend_days


@given(money, percentages, percentages)
def test_fee_and_owner_amount_partition_the_total(subtotal, gst, commission):
    price = price_booking(subtotal, gst, commission)

    assert price.platform_fee + price.owner_amount == price.total_amount
    assert price.platform_fee >= 0
    assert price.owner_amount >= 0
