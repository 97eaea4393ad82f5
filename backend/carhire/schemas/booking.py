"""Booking and customer-details schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from carhire.schemas.base import BaseSchema, IDMixin, TimestampMixin
from carhire.models.enums import BookingStatus


class BookingCreate(BaseSchema):
    """Book a car. Missing dates are reported by the booking workflow."""

    car_id: UUID
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class BookingDatesUpdate(BaseSchema):
    """Move a pending booking to new dates."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None


class BookingResponse(BaseSchema, IDMixin, TimestampMixin):
    """Booking response."""

    car_id: UUID
    customer_id: UUID
    start_date: date
    end_date: date
    total_amount: Decimal
    status: BookingStatus


class BookedCarSummary(BaseSchema):
    """Car fields shown next to a customer's booking."""

    id: UUID
    model: str
    year: int
    rate_per_day: Decimal
    license_plate: str
    image_url: Optional[str] = None
    seats: int
    provider_name: Optional[str] = None


class CustomerBookingResponse(BookingResponse):
    """A customer's booking with the booked car."""

    car: BookedCarSummary


class ProviderBookingResponse(BookingResponse):
    """A booking on one of the provider's cars."""

    car_model: Optional[str] = None
    license_plate: Optional[str] = None
    customer_name: str = "Unknown Customer"
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None


class CustomerDetailsCreate(BaseSchema):
    """Contact and emergency-contact details; every field is required."""

    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    address: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1, max_length=100)
    current_stay: str = Field(..., min_length=1)
    emergency_contact: str = Field(..., min_length=1, max_length=50)
    emergency_relation: str = Field(..., min_length=1, max_length=100)


class CustomerDetailsResponse(CustomerDetailsCreate, IDMixin):
    """Stored customer details."""

    booking_id: UUID
    customer_id: Optional[UUID] = None
    created_at: datetime
