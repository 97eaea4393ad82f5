"""Availability checks for cars against their unavailability windows.

All comparisons happen at calendar-date resolution. A requested range
``[start, end]`` conflicts with a window ``[w_start, w_end]`` iff
``start <= w_end and end >= w_start``; touching endpoints count.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence, TypeVar, Union

# Cars with no window data (or requests missing a bound) are bookable.
UNKNOWN_AVAILABILITY_DEFAULT = True

DateLike = Union[date, datetime, str]


def to_date(value: Optional[DateLike]) -> Optional[date]:
    """Normalize a date, datetime or ISO string to a calendar date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(value).date()


@dataclass(frozen=True)
class DateRange:
    """Requested inclusive date range; either bound may be missing."""

    start: Optional[date] = None
    end: Optional[date] = None

    @classmethod
    def of(cls, start: Optional[DateLike], end: Optional[DateLike]) -> "DateRange":
        return cls(start=to_date(start), end=to_date(end))

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None


class WindowLike(Protocol):
    start_date: date
    end_date: date
    is_available: bool


class CarLike(Protocol):
    availability: Sequence[WindowLike]


CarT = TypeVar("CarT", bound=CarLike)


def windows_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Closed-interval intersection test."""
    return a_start <= b_end and a_end >= b_start


def is_available(
    windows: Optional[Iterable[WindowLike]],
    requested: DateRange,
) -> bool:
    """Whether ``requested`` avoids every unavailable window.

    Returns ``UNKNOWN_AVAILABILITY_DEFAULT`` when the request is missing a
    bound or the window list is unknown (``None``).
    """
    if not requested.is_complete or windows is None:
        return UNKNOWN_AVAILABILITY_DEFAULT

    start, end = to_date(requested.start), to_date(requested.end)
    for window in windows:
        if window.is_available:
            continue
        if windows_overlap(start, end, to_date(window.start_date), to_date(window.end_date)):
            return False
    return True


def annotate_cars(cars: Iterable[CarT], requested: DateRange) -> list[tuple[CarT, bool]]:
    """Pair each car with its availability for ``requested``."""
    return [(car, is_available(car.availability, requested)) for car in cars]


def filter_available(cars: Iterable[CarT], requested: DateRange) -> list[CarT]:
    """Cars bookable for ``requested`` (browse-time filter)."""
    return [car for car, available in annotate_cars(cars, requested) if available]
