"""Car and UnavailabilityWindow models."""

import uuid
from datetime import datetime, date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    String,
    DateTime,
    Date,
    Integer,
    Numeric,
    Boolean,
    Text,
    Uuid,
    ForeignKey,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carhire.core.database import Base

if TYPE_CHECKING:
    from carhire.models.profile import Profile
    from carhire.models.booking import Booking


class Car(Base):
    """A car listed by a provider."""

    __tablename__ = "cars"
    __table_args__ = (
        CheckConstraint("rate_per_day > 0", name="ck_cars_rate_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    provider_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    model: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    license_plate: Mapped[str] = mapped_column(String(50), nullable=False)
    seats: Mapped[int] = mapped_column(Integer, nullable=False)
    rate_per_day: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    provider: Mapped[Optional["Profile"]] = relationship("Profile", back_populates="cars")
    availability: Mapped[list["UnavailabilityWindow"]] = relationship(
        "UnavailabilityWindow",
        back_populates="car",
        cascade="all, delete-orphan",
        order_by="UnavailabilityWindow.start_date",
    )
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking", back_populates="car", cascade="all, delete-orphan"
    )

    @property
    def provider_name(self) -> Optional[str]:
        return self.provider.full_name if self.provider else None

    @property
    def booking_count(self) -> int:
        return len(self.bookings)

    @property
    def unavailable_windows(self) -> list["UnavailabilityWindow"]:
        return [w for w in self.availability if not w.is_available]


class UnavailabilityWindow(Base):
    """Inclusive date window attached to a car.

    Only windows with ``is_available = False`` block bookings.
    """

    __tablename__ = "car_availability"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_car_availability_dates"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    car_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("cars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    car: Mapped["Car"] = relationship("Car", back_populates="availability")
