from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from carhire.core.errors import AuthRequiredError, BackendError, NotFoundError, ValidationError
from carhire.models.enums import BookingStatus, UserRole
from carhire.schemas.car import CarCreate, CarUpdate
from carhire.services.availability import DateRange, is_available
from carhire.services.booking_workflow import BookingWorkflow
from carhire.services.provider import ProviderService
from tests_support import session_for, windows_of


@pytest.fixture
def service(backend, provider_session, storage):
    return ProviderService(backend, provider_session, storage)


@pytest.fixture
async def rival_provider_session(backend):
    profile = await backend.insert_profile({
        "firebase_uid": "fb-provider-2",
        "role": UserRole.PROVIDER,
        "full_name": "Valley Cabs",
    })
    return session_for(profile)


# === Cars ===

async def test_create_car_is_owned_by_provider(service, provider_profile):
    car = await service.create_car(CarCreate(
        model="Maruti Swift",
        year=2021,
        license_plate="JK02XY0001",
        seats=5,
        rate_per_day=Decimal("45.50"),
    ))

    assert car.provider_id == provider_profile.id
    assert car.provider_name == "Kashmir Wheels"
    assert car.booking_count == 0


async def test_customers_cannot_create_cars(backend, customer_session):
    with pytest.raises(AuthRequiredError):
        await ProviderService(backend, customer_session).create_car(CarCreate(
            model="Maruti Swift", year=2021, license_plate="X", seats=5, rate_per_day=Decimal("10"),
        ))


async def test_update_car(service, car):
    updated = await service.update_car(car.id, CarUpdate(rate_per_day=Decimal("120")))
    assert updated.rate_per_day == Decimal("120")
    assert updated.model == "Toyota Innova"


async def test_update_car_requires_changes(service, car):
    with pytest.raises(ValidationError):
        await service.update_car(car.id, CarUpdate())


async def test_other_provider_cannot_touch_car(backend, car, rival_provider_session):
    rival = ProviderService(backend, rival_provider_session)
    with pytest.raises(NotFoundError):
        await rival.update_car(car.id, CarUpdate(seats=2))
    with pytest.raises(NotFoundError):
        await rival.set_unavailability(car.id, DateRange(date(2024, 6, 1), date(2024, 6, 2)))


async def test_upload_car_image(service, car, storage_provider):
    updated = await service.upload_car_image(car.id, "front.JPG", b"\xff\xd8jpeg", "image/jpeg")

    [path] = storage_provider.objects
    assert path.startswith(f"{car.id}/")
    assert path.endswith(".jpg")
    assert updated.image_url == f"https://images.test/{path}"


# === Unavailability ===

async def test_set_unavailability_replaces_existing_windows(service, backend, car):
    await service.add_unavailability(car.id, DateRange(date(2024, 6, 1), date(2024, 6, 3)))
    await service.add_unavailability(car.id, DateRange(date(2024, 6, 20), date(2024, 6, 25)))
    assert len(windows_of(await backend.get_car(car.id))) == 2

    await service.set_unavailability(car.id, DateRange(date(2024, 7, 1), date(2024, 7, 4)))

    windows = windows_of(await backend.get_car(car.id))
    assert windows == [(date(2024, 7, 1), date(2024, 7, 4))]


async def test_replace_failure_keeps_previous_windows(service, backend, blocked_car, monkeypatch):
    # The rollback expires loaded instances
    car_id = blocked_car.id

    async def broken_flush(*args, **kwargs):
        raise OperationalError("INSERT INTO car_availability", {}, Exception("disk I/O error"))

    monkeypatch.setattr(backend.db, "flush", broken_flush)

    with pytest.raises(BackendError, match="Failed to update unavailability dates"):
        await service.set_unavailability(car_id, DateRange(date(2024, 7, 1), date(2024, 7, 4)))

    monkeypatch.undo()
    windows = windows_of(await backend.get_car(car_id))
    assert windows == [(date(2024, 6, 10), date(2024, 6, 15))]


async def test_set_unavailability_requires_complete_range(service, car):
    with pytest.raises(ValidationError):
        await service.set_unavailability(car.id, DateRange(date(2024, 7, 1), None))
    with pytest.raises(ValidationError):
        await service.add_unavailability(car.id, DateRange(date(2024, 7, 4), date(2024, 7, 1)))


async def test_clear_unavailability(service, backend, blocked_car):
    removed = await service.clear_unavailability(blocked_car.id)

    car = await backend.get_car(blocked_car.id)
    assert removed == 1
    assert car.unavailable_windows == []
    assert is_available(car.availability, DateRange(date(2024, 6, 12), date(2024, 6, 12)))


# === Bookings ===

async def test_list_bookings_latest_start_first(
    service, backend, car, customer_session, details_payload
):
    workflow = BookingWorkflow(backend, customer_session)
    early = await workflow.create_booking(car.id, DateRange(date(2024, 6, 1), date(2024, 6, 3)))
    late = await workflow.create_booking(car.id, DateRange(date(2024, 8, 1), date(2024, 8, 2)))
    await workflow.submit_customer_details(late.id, details_payload)

    bookings = await service.list_bookings()

    assert [b.id for b in bookings] == [late.id, early.id]
    assert bookings[0].car_model == "Toyota Innova"
    assert bookings[0].customer_name == "Asha Rao"
    assert bookings[0].customer_email == "asha@example.com"
    assert bookings[1].customer_phone is None


async def test_list_cars_with_bookings(service, backend, car, blocked_car, customer_session):
    booking = await BookingWorkflow(backend, customer_session).create_booking(
        car.id, DateRange(date(2024, 6, 1), date(2024, 6, 3))
    )

    cars = {c.id: c for c in await service.list_cars_with_bookings()}

    assert [b.id for b in cars[car.id].bookings] == [booking.id]
    assert cars[car.id].booking_count == 1
    assert cars[car.id].bookings[0].status == BookingStatus.PENDING
    assert cars[blocked_car.id].bookings == []
    assert len(cars[blocked_car.id].unavailable_windows) == 1


async def test_provider_with_no_cars_sees_no_bookings(backend, rival_provider_session, car):
    assert await ProviderService(backend, rival_provider_session).list_bookings() == []
