"""Provider workflows: car listings, unavailability, images and bookings."""

import logging
from typing import Optional
from uuid import UUID

from carhire.core.errors import NotFoundError, ValidationError
from carhire.core.session import SessionContext, SessionUser
from carhire.models.booking import Booking
from carhire.models.car import Car, UnavailabilityWindow
from carhire.models.enums import UserRole
from carhire.schemas.booking import ProviderBookingResponse
from carhire.schemas.car import CarCreate, CarUpdate, ProviderCarResponse
from carhire.services.availability import DateRange
from carhire.services.backend import BackendDataService
from carhire.services.booking_workflow import require_complete_range
from carhire.services.storage import StorageService

logger = logging.getLogger(__name__)


def provider_booking_view(booking: Booking) -> ProviderBookingResponse:
    """Booking annotated with car model and the customer's contact details."""
    details = booking.customer_details[0] if booking.customer_details else None
    customer_name = None
    if booking.customer and booking.customer.full_name:
        customer_name = booking.customer.full_name
    elif details:
        customer_name = details.full_name

    return ProviderBookingResponse(
        id=booking.id,
        car_id=booking.car_id,
        customer_id=booking.customer_id,
        start_date=booking.start_date,
        end_date=booking.end_date,
        total_amount=booking.total_amount,
        status=booking.status,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
        car_model=booking.car.model if booking.car else None,
        license_plate=booking.car.license_plate if booking.car else None,
        customer_name=customer_name or "Unknown Customer",
        customer_phone=details.phone if details else None,
        customer_email=details.email if details else None,
    )


class ProviderService:
    """Operations on the session provider's own cars."""

    def __init__(
        self,
        backend: BackendDataService,
        session: SessionContext,
        storage: Optional[StorageService] = None,
    ):
        self.backend = backend
        self.session = session
        self.storage = storage

    def _require_provider(self) -> SessionUser:
        return self.session.require_role(UserRole.PROVIDER)

    async def _owned_car(self, car_id: UUID) -> Car:
        user = self._require_provider()
        car = await self.backend.get_car(car_id)
        if car.provider_id != user.profile_id:
            raise NotFoundError("Car not found")
        return car

    # === Cars ===

    async def create_car(self, data: CarCreate) -> Car:
        user = self._require_provider()
        car = await self.backend.insert_car({
            **data.model_dump(),
            "provider_id": user.profile_id,
        })
        logger.info(f"[PROVIDER] Car {car.id} listed by {user.profile_id}")
        return car

    async def update_car(self, car_id: UUID, data: CarUpdate) -> Car:
        await self._owned_car(car_id)
        fields = data.model_dump(exclude_unset=True)
        if not fields:
            raise ValidationError("No changes to save")
        return await self.backend.update_car(car_id, fields)

    async def upload_car_image(
        self,
        car_id: UUID,
        file_name: str,
        content: bytes,
        mime_type: str,
    ) -> Car:
        """Store an image under the car's folder and point ``image_url`` at it."""
        await self._owned_car(car_id)
        if self.storage is None:
            raise ValidationError("Image uploads are not configured")

        url = await self.storage.upload_car_image(car_id, file_name, content, mime_type)
        return await self.backend.update_car(car_id, {"image_url": url})

    # === Unavailability ===

    async def set_unavailability(self, car_id: UUID, date_range: DateRange) -> UnavailabilityWindow:
        """Replace every unavailable window of the car with ``date_range``."""
        require_complete_range(date_range)
        await self._owned_car(car_id)

        window = await self.backend.replace_unavailability(car_id, date_range.start, date_range.end)
        logger.info(f"[PROVIDER] Unavailability for {car_id} set to {date_range.start}..{date_range.end}")
        return window

    async def add_unavailability(self, car_id: UUID, date_range: DateRange) -> UnavailabilityWindow:
        require_complete_range(date_range)
        await self._owned_car(car_id)

        return await self.backend.insert_unavailability({
            "car_id": car_id,
            "start_date": date_range.start,
            "end_date": date_range.end,
            "is_available": False,
        })

    async def clear_unavailability(self, car_id: UUID) -> int:
        await self._owned_car(car_id)
        removed = await self.backend.delete_unavailability(car_id, is_available=False)
        logger.info(f"[PROVIDER] Cleared {removed} unavailable window(s) for {car_id}")
        return removed

    # === Bookings ===

    async def list_bookings(self) -> list[ProviderBookingResponse]:
        """Bookings on the provider's cars, latest start date first."""
        user = self._require_provider()
        cars = await self.backend.list_cars(provider_id=user.profile_id)
        bookings = await self.backend.list_bookings_for_cars(car.id for car in cars)
        return [provider_booking_view(b) for b in bookings]

    async def list_cars_with_bookings(self) -> list[ProviderCarResponse]:
        user = self._require_provider()
        cars = await self.backend.list_cars(provider_id=user.profile_id)
        # Snapshot the cars first: the bookings query refreshes them and resets
        # their booking collections to unloaded
        views = [ProviderCarResponse.model_validate(car) for car in cars]
        bookings = await self.backend.list_bookings_for_cars(view.id for view in views)

        by_car: dict[UUID, list[ProviderBookingResponse]] = {view.id: [] for view in views}
        for booking in bookings:
            by_car[booking.car_id].append(provider_booking_view(booking))

        return [view.model_copy(update={"bookings": by_car[view.id]}) for view in views]
