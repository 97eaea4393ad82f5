"""Booking price computation."""

from datetime import date
from decimal import Decimal
from typing import Union

from carhire.core.errors import ValidationError
from carhire.services.availability import DateLike, to_date


def day_count(start: DateLike, end: DateLike) -> int:
    """Inclusive number of calendar days: a same-day booking is one day."""
    start_date: date = to_date(start)
    end_date: date = to_date(end)
    if end_date < start_date:
        raise ValidationError("End date must be on or after the start date")
    return (end_date - start_date).days + 1


def compute_amount(
    start: DateLike,
    end: DateLike,
    daily_rate: Union[Decimal, int, float, str],
) -> Decimal:
    """Total charge: inclusive day count times the daily rate.

    Used for both new bookings and date edits so the two always agree.
    """
    rate = Decimal(str(daily_rate))
    if rate <= 0:
        raise ValidationError("Daily rate must be positive")
    return day_count(start, end) * rate
