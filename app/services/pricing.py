# app/services/pricing.py
"""
Pricing engine.

Turns a service's unit price and pricing unit into the total charged for a
requested range. Amounts stay in Decimal throughout; partial hours and days
are always charged as whole ones.
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Union

from app.core.exceptions import ValidationError
from app.db.models.service import PricingUnit

ONE_DAY = timedelta(days=1)
ONE_HOUR = timedelta(hours=1)


def _ceil_units(duration: timedelta, unit: timedelta) -> int:
    whole, rest = divmod(duration, unit)
    return whole + 1 if rest else whole


def count_nights(start: datetime, end: datetime) -> int:
    return (end.date() - start.date()).days


def count_days(start: datetime, end: datetime) -> int:
    return _ceil_units(end - start, ONE_DAY)


def count_hours(start: datetime, end: datetime) -> int:
    return _ceil_units(end - start, ONE_HOUR)


def compute_price(
    pricing_unit: Union[PricingUnit, str],
    price: Decimal,
    start: datetime,
    end: datetime,
    guest_count: Optional[int] = None,
) -> Decimal:
    """Total price for booking ``[start, end)`` at ``price`` per ``pricing_unit``.

    Raises ValidationError when the result would not be positive, e.g. a
    per-person booking without guests or a per-night booking that starts and
    ends on the same calendar day.
    """
    if end <= start:
        raise ValidationError("Booking end date must be after start date")

    price = Decimal(price)
    unit = PricingUnit(pricing_unit)

    if unit == PricingUnit.PER_NIGHT:
        total = price * count_nights(start, end)
    elif unit == PricingUnit.PER_DAY:
        total = price * count_days(start, end)
    elif unit == PricingUnit.PER_HOUR:
        total = price * count_hours(start, end)
    elif unit == PricingUnit.PER_PERSON:
        if guest_count is None or guest_count <= 0:
            raise ValidationError("Guest count is required for per-person pricing")
        total = price * guest_count
    else:
        total = price

    if total <= 0:
        raise ValidationError("Requested dates do not cover a billable period")
    return total
