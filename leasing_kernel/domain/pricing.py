"""
Booking pricing (``leasing_kernel.domain.pricing``).

Responsibility
--------------
Compute the cost of a date range on a site from its weekday and weekend
day rates and any seasonal rate overrides, then split it into GST,
platform fee and owner amount.

Architecture position
---------------------
**Kernel domain layer** -- pure functions, ZERO I/O.  Seasonal rates are
passed in as ``SeasonalRateInfo`` snapshots by the caller.

Invariants enforced
-------------------
* Day counts are inclusive of both ends.
* Saturday and Sunday are weekend days.
* Rate priority per day: seasonal rate > weekend rate > base rate.  Where
  several seasonal rates cover a day, the first one in the given order wins.
* All amounts are ``Decimal``; final figures are rounded half-up to cents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Sequence

from leasing_kernel.domain.booking import DateRange
from leasing_kernel.domain.values import round_money, to_money
from leasing_kernel.exceptions import ValidationError

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class SeasonalRateInfo:
    name: str
    start_date: date
    end_date: date
    weekday_rate: Decimal | None = None
    weekend_rate: Decimal | None = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class SeasonalDay:
    day: date
    rate: Decimal
    name: str


@dataclass(frozen=True)
class CostBreakdown:
    subtotal: Decimal
    weekday_count: int
    weekend_count: int
    seasonal_days: tuple[SeasonalDay, ...] = field(default_factory=tuple)

    @property
    def day_count(self) -> int:
        return self.weekday_count + self.weekend_count


@dataclass(frozen=True)
class PriceBreakdown:
    total_amount: Decimal
    gst_amount: Decimal
    gst_percentage: Decimal
    platform_fee: Decimal
    owner_amount: Decimal


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def _seasonal_day_rate(
    rate: SeasonalRateInfo,
    weekend: bool,
    weekday_rate: Decimal,
    weekend_rate: Decimal,
) -> Decimal:
    if weekend and rate.weekend_rate is not None:
        return rate.weekend_rate
    if not weekend and rate.weekday_rate is not None:
        return rate.weekday_rate
    # Only one variant configured: it applies to every day.
    if rate.weekday_rate is not None:
        return rate.weekday_rate
    if rate.weekend_rate is not None:
        return rate.weekend_rate
    return weekend_rate if weekend else weekday_rate


def calculate_booking_cost(
    weekday_rate: Decimal,
    weekend_rate: Decimal | None,
    start_date: date,
    end_date: date,
    seasonal_rates: Sequence[SeasonalRateInfo] = (),
) -> CostBreakdown:
    """Cost of ``[start_date, end_date]`` before GST."""
    base = to_money(weekday_rate)
    weekend_base = to_money(weekend_rate) if weekend_rate is not None else base
    if base < 0 or weekend_base < 0:
        raise ValidationError("price_per_day", "day rates must be non-negative")

    subtotal = Decimal("0")
    weekday_count = 0
    weekend_count = 0
    seasonal_days: list[SeasonalDay] = []

    for day in DateRange(start_date, end_date).each_day():
        weekend = is_weekend(day)
        if weekend:
            weekend_count += 1
        else:
            weekday_count += 1

        seasonal = next((r for r in seasonal_rates if r.covers(day)), None)
        if seasonal is not None:
            rate = _seasonal_day_rate(seasonal, weekend, base, weekend_base)
            seasonal_days.append(SeasonalDay(day=day, rate=rate, name=seasonal.name))
        else:
            rate = weekend_base if weekend else base
        subtotal += rate

    return CostBreakdown(
        subtotal=round_money(subtotal),
        weekday_count=weekday_count,
        weekend_count=weekend_count,
        seasonal_days=tuple(seasonal_days),
    )


def price_booking(
    subtotal: Decimal,
    gst_percentage: Decimal,
    commission_percentage: Decimal,
) -> PriceBreakdown:
    """
    Split a subtotal into the stored monetary breakdown.

    ``total_amount`` is the GST-exclusive subtotal; GST is carried
    separately.  The platform fee is the owner's commission on the
    subtotal and the owner receives the remainder.
    """
    total = round_money(to_money(subtotal))
    gst_pct = to_money(gst_percentage)
    commission = to_money(commission_percentage)
    if total < 0:
        raise ValidationError("total_amount", "must be non-negative")
    if not (0 <= commission <= _HUNDRED):
        raise ValidationError("commission_percentage", "must be between 0 and 100")
    if gst_pct < 0:
        raise ValidationError("gst_percentage", "must be non-negative")

    platform_fee = round_money(total * commission / _HUNDRED)
    return PriceBreakdown(
        total_amount=total,
        gst_amount=round_money(total * gst_pct / _HUNDRED),
        gst_percentage=gst_pct,
        platform_fee=platform_fee,
        owner_amount=total - platform_fee,
    )
