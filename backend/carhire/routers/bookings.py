"""Bookings router - customer booking flow.

Flow: create (pending) -> customer-details -> finalize (confirmed).
"""

from typing import Any, List
from uuid import UUID

from fastapi import APIRouter, Body, Depends, status

from carhire.core.errors import ValidationError
from carhire.core.security import get_backend, get_session_context
from carhire.core.session import SessionContext
from carhire.models.enums import UserRole
from carhire.schemas.booking import (
    BookingCreate,
    BookingDatesUpdate,
    BookingResponse,
    CustomerBookingResponse,
    CustomerDetailsResponse,
)
from carhire.services.availability import DateRange
from carhire.services.backend import BackendDataService
from carhire.services.booking_workflow import BookingWorkflow, require_complete_range

router = APIRouter(prefix="/bookings", tags=["bookings"])


def get_workflow(
    backend: BackendDataService = Depends(get_backend),
    session: SessionContext = Depends(get_session_context),
) -> BookingWorkflow:
    return BookingWorkflow(backend, session)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    backend: BackendDataService = Depends(get_backend),
    session: SessionContext = Depends(get_session_context),
    workflow: BookingWorkflow = Depends(get_workflow),
):
    """Create a pending booking at the car's current daily rate.

    The range is checked against the car's unavailable windows before
    booking. Other bookings are not consulted.
    """
    date_range = DateRange.of(data.start_date, data.end_date)
    require_complete_range(date_range)
    session.require_role(UserRole.CUSTOMER)

    car = await backend.get_car(data.car_id)
    quote = BookingWorkflow.quote(car, date_range)
    if not quote.available:
        raise ValidationError("This car is not available for the selected dates")

    return await workflow.create_booking(car.id, date_range, daily_rate=car.rate_per_day)


@router.get("", response_model=List[CustomerBookingResponse])
async def list_my_bookings(workflow: BookingWorkflow = Depends(get_workflow)):
    """The signed-in customer's bookings, newest first."""
    return await workflow.list_customer_bookings()


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: UUID, workflow: BookingWorkflow = Depends(get_workflow)):
    return await workflow.get_booking(booking_id)


@router.patch("/{booking_id}/dates", response_model=BookingResponse)
async def edit_booking_dates(
    booking_id: UUID,
    data: BookingDatesUpdate,
    workflow: BookingWorkflow = Depends(get_workflow),
):
    """Move a pending booking; the amount is recomputed at the car's rate."""
    return await workflow.edit_booking_dates(
        booking_id, DateRange.of(data.start_date, data.end_date)
    )


@router.post(
    "/{booking_id}/customer-details",
    response_model=CustomerDetailsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_customer_details(
    booking_id: UUID,
    details: dict[str, Any] = Body(...),
    workflow: BookingWorkflow = Depends(get_workflow),
):
    """Store contact details. The booking stays pending until finalized."""
    return await workflow.submit_customer_details(booking_id, details)


@router.post("/{booking_id}/finalize", response_model=BookingResponse)
async def finalize_booking(booking_id: UUID, workflow: BookingWorkflow = Depends(get_workflow)):
    """Confirm the booking. Safe to retry."""
    return await workflow.finalize_booking(booking_id)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(booking_id: UUID, workflow: BookingWorkflow = Depends(get_workflow)):
    return await workflow.cancel_booking(booking_id)
