"""Car and unavailability schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field

from carhire.schemas.base import BaseSchema, IDMixin
from carhire.schemas.booking import ProviderBookingResponse


class CarCreate(BaseSchema):
    """Create a new car listing."""

    model: str = Field(..., min_length=1, max_length=255)
    year: int = Field(..., ge=1900, le=2100)
    license_plate: str = Field(..., min_length=1, max_length=50)
    seats: int = Field(..., ge=1, le=60)
    rate_per_day: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None


class CarUpdate(BaseSchema):
    """Update a car listing."""

    model: Optional[str] = Field(None, min_length=1, max_length=255)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    license_plate: Optional[str] = Field(None, min_length=1, max_length=50)
    seats: Optional[int] = Field(None, ge=1, le=60)
    rate_per_day: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None


class UnavailabilityRequest(BaseSchema):
    """Date range a provider blocks for a car."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None


class UnavailabilityWindowResponse(BaseSchema, IDMixin):
    car_id: UUID
    start_date: date
    end_date: date
    is_available: bool


class CarResponse(BaseSchema, IDMixin):
    """Car as listed to customers."""

    provider_id: Optional[UUID] = None
    provider_name: Optional[str] = None
    model: str
    year: int
    license_plate: str
    seats: int
    rate_per_day: Decimal
    description: Optional[str] = None
    image_url: Optional[str] = None
    booking_count: int = 0
    created_at: datetime
    # Advisory availability for the requested range (True when no range given)
    is_available: bool = True


class CarDetailResponse(CarResponse):
    """Car detail with unavailable windows and a price quote."""

    unavailable_windows: list[UnavailabilityWindowResponse] = []
    day_count: Optional[int] = None
    total_amount: Optional[Decimal] = None


class ProviderCarResponse(CarResponse):
    """Provider's own car with its windows and bookings."""

    unavailable_windows: list[UnavailabilityWindowResponse] = []
    bookings: list[ProviderBookingResponse] = []
