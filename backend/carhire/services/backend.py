"""Data backend interface and its SQLAlchemy implementation.

The domain services only talk to ``BackendDataService``. Each write is one
round trip with its own commit, and a ``ChangeEvent`` is published on the
change feed once the commit succeeds.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, AsyncIterator, Iterable, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from carhire.core.errors import BackendError, NotFoundError
from carhire.models.booking import Booking, CustomerDetails
from carhire.models.car import Car, UnavailabilityWindow
from carhire.models.enums import ChangeType
from carhire.models.profile import Profile
from carhire.services.realtime import ChangeCallback, ChangeEvent, ChangeFeed, Subscription

logger = logging.getLogger(__name__)


class BackendDataService(ABC):
    """Abstract interface for the data backend."""

    # === Cars ===

    @abstractmethod
    async def list_cars(self, provider_id: Optional[UUID] = None) -> list[Car]:
        """Cars with provider, unavailability windows and bookings loaded."""
        pass

    @abstractmethod
    async def get_car(self, car_id: UUID) -> Car:
        """One car with the same relations as ``list_cars``; NotFoundError if missing."""
        pass

    @abstractmethod
    async def insert_car(self, record: dict[str, Any]) -> Car:
        pass

    @abstractmethod
    async def update_car(self, car_id: UUID, fields: dict[str, Any]) -> Car:
        pass

    # === Unavailability ===

    @abstractmethod
    async def insert_unavailability(self, record: dict[str, Any]) -> UnavailabilityWindow:
        pass

    @abstractmethod
    async def delete_unavailability(self, car_id: UUID, is_available: bool = False) -> int:
        """Delete a car's windows with the given flag; returns the row count."""
        pass

    @abstractmethod
    async def replace_unavailability(
        self, car_id: UUID, start_date: date, end_date: date
    ) -> UnavailabilityWindow:
        """Atomically swap a car's unavailable windows for a single new one."""
        pass

    # === Bookings ===

    @abstractmethod
    async def get_booking(self, booking_id: UUID) -> Booking:
        pass

    @abstractmethod
    async def insert_booking(self, record: dict[str, Any]) -> Booking:
        pass

    @abstractmethod
    async def update_booking(self, booking_id: UUID, fields: dict[str, Any]) -> Booking:
        pass

    @abstractmethod
    async def list_bookings_for_cars(self, car_ids: Iterable[UUID]) -> list[Booking]:
        """Bookings for the given cars, latest start date first."""
        pass

    @abstractmethod
    async def list_bookings_for_customer(self, customer_id: UUID) -> list[Booking]:
        """A customer's bookings, newest first."""
        pass

    # === Customer details ===

    @abstractmethod
    async def insert_customer_details(self, record: dict[str, Any]) -> CustomerDetails:
        pass

    @abstractmethod
    async def get_customer_details(self, booking_id: UUID) -> Optional[CustomerDetails]:
        pass

    # === Profiles ===

    @abstractmethod
    async def get_profile(self, profile_id: UUID) -> Profile:
        pass

    @abstractmethod
    async def get_profile_by_uid(self, firebase_uid: str) -> Optional[Profile]:
        pass

    @abstractmethod
    async def insert_profile(self, record: dict[str, Any]) -> Profile:
        pass

    # === Realtime ===

    @abstractmethod
    def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        """Register for every committed change on ``table``."""
        pass


class SqlAlchemyBackend(BackendDataService):
    """Backend over an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession, feed: ChangeFeed):
        self.db = db
        self.feed = feed

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[None]:
        """Roll back and wrap database failures as BackendError."""
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[BACKEND] {operation} failed: {e}")
            raise BackendError(f"Failed to {operation}. Please try again.") from e

    async def _publish(self, table: str, change_type: ChangeType, record_id: Optional[UUID]) -> None:
        await self.feed.publish(ChangeEvent(table=table, change_type=change_type, record_id=record_id))

    def _car_query(self):
        return (
            select(Car)
            .options(
                selectinload(Car.provider),
                selectinload(Car.availability),
                selectinload(Car.bookings),
            )
            .execution_options(populate_existing=True)
        )

    # === Cars ===

    async def list_cars(self, provider_id: Optional[UUID] = None) -> list[Car]:
        query = self._car_query()
        if provider_id:
            query = query.where(Car.provider_id == provider_id)
        query = query.order_by(Car.created_at.desc())

        async with self._transaction("load cars"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def get_car(self, car_id: UUID) -> Car:
        async with self._transaction("load car"):
            result = await self.db.execute(self._car_query().where(Car.id == car_id))
            car = result.scalar_one_or_none()

        if not car:
            raise NotFoundError("Car not found")
        return car

    async def insert_car(self, record: dict[str, Any]) -> Car:
        car = Car(**record)
        async with self._transaction("add car"):
            self.db.add(car)
            await self.db.commit()

        logger.info(f"[BACKEND] Car created: {car.id}")
        await self._publish("cars", ChangeType.INSERT, car.id)
        return await self.get_car(car.id)

    async def update_car(self, car_id: UUID, fields: dict[str, Any]) -> Car:
        car = await self.get_car(car_id)
        async with self._transaction("update car"):
            for name, value in fields.items():
                setattr(car, name, value)
            await self.db.commit()

        await self._publish("cars", ChangeType.UPDATE, car_id)
        return await self.get_car(car_id)

    # === Unavailability ===

    async def insert_unavailability(self, record: dict[str, Any]) -> UnavailabilityWindow:
        window = UnavailabilityWindow(**record)
        async with self._transaction("save unavailability dates"):
            self.db.add(window)
            await self.db.commit()

        await self._publish("car_availability", ChangeType.INSERT, window.id)
        return window

    async def delete_unavailability(self, car_id: UUID, is_available: bool = False) -> int:
        async with self._transaction("clear unavailability dates"):
            result = await self.db.execute(
                delete(UnavailabilityWindow).where(
                    UnavailabilityWindow.car_id == car_id,
                    UnavailabilityWindow.is_available.is_(is_available),
                )
            )
            await self.db.commit()

        if result.rowcount:
            await self._publish("car_availability", ChangeType.DELETE, car_id)
        return result.rowcount

    async def replace_unavailability(
        self, car_id: UUID, start_date: date, end_date: date
    ) -> UnavailabilityWindow:
        window = UnavailabilityWindow(
            car_id=car_id,
            start_date=start_date,
            end_date=end_date,
            is_available=False,
        )
        # Delete and insert share one transaction: either both land or neither does
        async with self._transaction("update unavailability dates"):
            await self.db.execute(
                delete(UnavailabilityWindow).where(
                    UnavailabilityWindow.car_id == car_id,
                    UnavailabilityWindow.is_available.is_(False),
                )
            )
            self.db.add(window)
            await self.db.flush()
            await self.db.commit()

        await self._publish("car_availability", ChangeType.DELETE, car_id)
        await self._publish("car_availability", ChangeType.INSERT, window.id)
        return window

    # === Bookings ===

    async def get_booking(self, booking_id: UUID) -> Booking:
        async with self._transaction("load booking"):
            result = await self.db.execute(
                select(Booking)
                .where(Booking.id == booking_id)
                .execution_options(populate_existing=True)
            )
            booking = result.scalar_one_or_none()

        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    async def insert_booking(self, record: dict[str, Any]) -> Booking:
        booking = Booking(**record)
        async with self._transaction("create booking"):
            self.db.add(booking)
            await self.db.commit()

        await self._publish("bookings", ChangeType.INSERT, booking.id)
        return booking

    async def update_booking(self, booking_id: UUID, fields: dict[str, Any]) -> Booking:
        booking = await self.get_booking(booking_id)
        async with self._transaction("update booking"):
            for name, value in fields.items():
                setattr(booking, name, value)
            await self.db.commit()

        await self._publish("bookings", ChangeType.UPDATE, booking_id)
        return await self.get_booking(booking_id)

    async def list_bookings_for_cars(self, car_ids: Iterable[UUID]) -> list[Booking]:
        car_ids = list(car_ids)
        if not car_ids:
            return []

        async with self._transaction("load bookings"):
            result = await self.db.execute(
                select(Booking)
                .options(
                    selectinload(Booking.car).selectinload(Car.provider),
                    selectinload(Booking.car).selectinload(Car.availability),
                    selectinload(Booking.customer),
                    selectinload(Booking.customer_details),
                )
                .where(Booking.car_id.in_(car_ids))
                .order_by(Booking.start_date.desc())
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    async def list_bookings_for_customer(self, customer_id: UUID) -> list[Booking]:
        async with self._transaction("load your bookings"):
            result = await self.db.execute(
                select(Booking)
                .options(selectinload(Booking.car).selectinload(Car.provider))
                .where(Booking.customer_id == customer_id)
                .order_by(Booking.created_at.desc())
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    # === Customer details ===

    async def insert_customer_details(self, record: dict[str, Any]) -> CustomerDetails:
        details = CustomerDetails(**record)
        async with self._transaction("save customer details"):
            self.db.add(details)
            await self.db.commit()

        await self._publish("customer_details", ChangeType.INSERT, details.id)
        return details

    async def get_customer_details(self, booking_id: UUID) -> Optional[CustomerDetails]:
        async with self._transaction("load customer details"):
            result = await self.db.execute(
                select(CustomerDetails)
                .where(CustomerDetails.booking_id == booking_id)
                .order_by(CustomerDetails.created_at)
                .limit(1)
            )
            return result.scalar_one_or_none()

    # === Profiles ===

    async def get_profile(self, profile_id: UUID) -> Profile:
        async with self._transaction("load profile"):
            result = await self.db.execute(select(Profile).where(Profile.id == profile_id))
            profile = result.scalar_one_or_none()

        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    async def get_profile_by_uid(self, firebase_uid: str) -> Optional[Profile]:
        async with self._transaction("load profile"):
            result = await self.db.execute(
                select(Profile).where(Profile.firebase_uid == firebase_uid)
            )
            return result.scalar_one_or_none()

    async def insert_profile(self, record: dict[str, Any]) -> Profile:
        profile = Profile(**record)
        async with self._transaction("create profile"):
            self.db.add(profile)
            await self.db.commit()

        await self._publish("profiles", ChangeType.INSERT, profile.id)
        return profile

    # === Realtime ===

    def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        return self.feed.subscribe(table, callback)
