"""Booking workflow: creation, date edits, two-phase confirmation.

Status flow::

    pending ──> confirmed ──> completed
       │
       └──> cancelled

A booking is created ``pending``. Customer details are captured in one call
and the booking is flipped to ``confirmed`` in a separate ``finalize`` call,
so a failed finalize can simply be retried. Availability is never
re-checked at write time: two customers can both hold ``pending`` bookings
for the same car and dates.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional, Union
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from carhire.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from carhire.core.session import SessionContext, SessionUser
from carhire.models.booking import Booking, CustomerDetails
from carhire.models.car import Car
from carhire.models.enums import BookingStatus, UserRole
from carhire.schemas.booking import CustomerDetailsCreate
from carhire.services.availability import DateRange, is_available
from carhire.services.backend import BackendDataService
from carhire.services.pricing import compute_amount, day_count

logger = logging.getLogger(__name__)

# confirmed -> confirmed is the idempotent finalize
ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CONFIRMED, BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


def check_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """Validate a status change.

    Returns:
        True if the status actually changes, False for an allowed no-op.

    Raises:
        InvalidTransitionError: If the state machine forbids the change.
    """
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Booking cannot move from {current.value} to {target.value}"
        )
    return current != target


@dataclass(frozen=True)
class BookingQuote:
    """Advisory availability and price for a car over a range."""

    available: bool
    day_count: Optional[int] = None
    total_amount: Optional[Decimal] = None


def require_complete_range(date_range: DateRange) -> None:
    if not date_range.is_complete:
        raise ValidationError("Please select both start and end dates")
    if date_range.end < date_range.start:
        raise ValidationError("End date must be on or after the start date")


class BookingWorkflow:
    """Booking operations on behalf of the user in ``session``."""

    def __init__(self, backend: BackendDataService, session: SessionContext):
        self.backend = backend
        self.session = session

    def _require_customer(self) -> SessionUser:
        return self.session.require_role(UserRole.CUSTOMER)

    async def _owned_booking(self, booking_id: UUID) -> Booking:
        """Load a booking belonging to the session's customer."""
        user = self.session.require_profile()
        booking = await self.backend.get_booking(booking_id)
        if booking.customer_id != user.profile_id:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    def quote(car: Car, date_range: DateRange) -> BookingQuote:
        """Availability against the car's windows plus the price, when the range is complete."""
        available = is_available(car.availability, date_range)
        if not date_range.is_complete or date_range.end < date_range.start:
            return BookingQuote(available=available)
        return BookingQuote(
            available=available,
            day_count=day_count(date_range.start, date_range.end),
            total_amount=compute_amount(date_range.start, date_range.end, car.rate_per_day),
        )

    async def create_booking(
        self,
        car_id: UUID,
        date_range: DateRange,
        daily_rate: Optional[Decimal] = None,
    ) -> Booking:
        """Persist a new ``pending`` booking for the session's customer.

        When ``daily_rate`` is omitted the car's stored rate is used.
        """
        require_complete_range(date_range)
        user = self._require_customer()

        if daily_rate is None:
            car = await self.backend.get_car(car_id)
            daily_rate = car.rate_per_day

        amount = compute_amount(date_range.start, date_range.end, daily_rate)
        booking = await self.backend.insert_booking({
            "car_id": car_id,
            "customer_id": user.profile_id,
            "start_date": date_range.start,
            "end_date": date_range.end,
            "total_amount": amount,
            "status": BookingStatus.PENDING,
        })

        logger.info(
            f"[BOOKING] Created {booking.id} car={car_id} customer={user.profile_id} "
            f"{date_range.start}..{date_range.end} amount={amount}"
        )
        return booking

    async def edit_booking_dates(
        self,
        booking_id: UUID,
        new_range: DateRange,
        daily_rate: Optional[Decimal] = None,
    ) -> Booking:
        """Move a pending booking to new dates and recompute its amount."""
        require_complete_range(new_range)
        booking = await self._owned_booking(booking_id)

        if booking.status != BookingStatus.PENDING:
            raise ValidationError(
                f"Only pending bookings can be changed (this one is {booking.status.value})"
            )

        if daily_rate is None:
            car = await self.backend.get_car(booking.car_id)
            daily_rate = car.rate_per_day

        amount = compute_amount(new_range.start, new_range.end, daily_rate)
        booking = await self.backend.update_booking(booking_id, {
            "start_date": new_range.start,
            "end_date": new_range.end,
            "total_amount": amount,
        })

        logger.info(f"[BOOKING] Dates changed {booking_id} {new_range.start}..{new_range.end} amount={amount}")
        return booking

    async def submit_customer_details(
        self,
        booking_id: UUID,
        details: Union[CustomerDetailsCreate, Mapping[str, Any]],
    ) -> CustomerDetails:
        """Store contact details for a booking. Does not touch its status."""
        try:
            data = CustomerDetailsCreate.model_validate(details)
        except PydanticValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise ValidationError(
                f"Please complete all required fields: {', '.join(fields)}"
            ) from e

        booking = await self._owned_booking(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise ValidationError("Details can only be added to a pending booking")

        if await self.backend.get_customer_details(booking_id):
            raise ValidationError("Customer details have already been submitted for this booking")

        record = await self.backend.insert_customer_details({
            "booking_id": booking_id,
            "customer_id": booking.customer_id,
            **data.model_dump(),
        })

        logger.info(f"[BOOKING] Customer details saved for {booking_id}")
        return record

    async def finalize_booking(self, booking_id: UUID) -> Booking:
        """Confirm a booking whose customer details are on file.

        Finalizing an already confirmed booking is a no-op.
        """
        booking = await self._owned_booking(booking_id)

        if not check_transition(booking.status, BookingStatus.CONFIRMED):
            logger.info(f"[BOOKING] {booking_id} already confirmed")
            return booking

        if not await self.backend.get_customer_details(booking_id):
            raise ValidationError("Please submit your details before confirming the booking")

        booking = await self.backend.update_booking(booking_id, {"status": BookingStatus.CONFIRMED})
        logger.info(f"[BOOKING] Confirmed {booking_id}")
        return booking

    async def cancel_booking(self, booking_id: UUID) -> Booking:
        booking = await self._owned_booking(booking_id)
        check_transition(booking.status, BookingStatus.CANCELLED)

        booking = await self.backend.update_booking(booking_id, {"status": BookingStatus.CANCELLED})
        logger.info(f"[BOOKING] Cancelled {booking_id}")
        return booking

    async def get_booking(self, booking_id: UUID) -> Booking:
        return await self._owned_booking(booking_id)

    async def list_customer_bookings(self) -> list[Booking]:
        user = self.session.require_profile()
        return await self.backend.list_bookings_for_customer(user.profile_id)
