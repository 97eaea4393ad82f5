from decimal import Decimal
from types import SimpleNamespace

import uuid
from datetime import date

import pytest
from firebase_admin import auth
from httpx import ASGITransport, AsyncClient

from carhire.core.database import async_session_factory, create_tables, get_db
from carhire.core.errors import AuthRequiredError, BackendError
from carhire.core.security import AuthenticatedUser, get_backend, get_current_user, get_session_context
from carhire.core.session import SessionContext
from carhire.main import app
from carhire.routers import auth as auth_router
from carhire.models.enums import UserRole
from carhire.routers import provider as provider_router
from carhire.routers.provider import get_storage, stream_bookings
from carhire.services.availability import DateRange
from carhire.services.backend import SqlAlchemyBackend
from carhire.services.booking_workflow import BookingWorkflow
from carhire.services.realtime import get_change_feed
from tests_support import session_for


class RequestSession:
    """Session context handed to every request; tests swap ``current``."""

    def __init__(self):
        self.current = SessionContext()

    async def __call__(self) -> SessionContext:
        return self.current


@pytest.fixture
def request_session():
    return RequestSession()


@pytest.fixture
async def client(db, storage, request_session):
    async def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_session_context] = request_session
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def as_customer(request_session, customer_session):
    request_session.current = customer_session


@pytest.fixture
def as_provider(request_session, provider_session):
    request_session.current = provider_session


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# === Cars ===

async def test_browse_flags_availability(client, car, blocked_car):
    response = await client.get("/v1/cars", params={"start_date": "2024-06-15", "end_date": "2024-06-20"})

    assert response.status_code == 200
    flags = {c["id"]: c["is_available"] for c in response.json()}
    assert flags == {str(car.id): True, str(blocked_car.id): False}


async def test_browse_available_only(client, car, blocked_car):
    response = await client.get(
        "/v1/cars",
        params={"start_date": "2024-06-15", "end_date": "2024-06-20", "available_only": True},
    )
    assert [c["id"] for c in response.json()] == [str(car.id)]


async def test_browse_without_dates_shows_all_available(client, car, blocked_car):
    response = await client.get("/v1/cars")
    assert all(c["is_available"] for c in response.json())
    assert len(response.json()) == 2


async def test_car_detail_quote(client, blocked_car):
    response = await client.get(
        f"/v1/cars/{blocked_car.id}", params={"start_date": "2024-06-16", "end_date": "2024-06-18"}
    )

    body = response.json()
    assert response.status_code == 200
    assert body["is_available"] is True
    assert body["day_count"] == 3
    assert Decimal(body["total_amount"]) == Decimal("450")
    assert body["provider_name"] == "Kashmir Wheels"
    assert [(w["start_date"], w["end_date"]) for w in body["unavailable_windows"]] == [
        ("2024-06-10", "2024-06-15")
    ]


async def test_unknown_car_is_404(client):
    response = await client.get("/v1/cars/6f1c1f5e-0d7a-4c1e-9a51-5b2f3c0e8a11")
    assert response.status_code == 404
    assert response.json() == {"detail": "Car not found"}


# === Bookings ===

async def test_booking_requires_sign_in(client, car):
    response = await client.post(
        "/v1/bookings",
        json={"car_id": str(car.id), "start_date": "2024-06-01", "end_date": "2024-06-03"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Please sign in to continue"


async def test_booking_missing_dates(client, car, as_customer):
    response = await client.post("/v1/bookings", json={"car_id": str(car.id)})
    assert response.status_code == 400
    assert response.json()["detail"] == "Please select both start and end dates"


async def test_booking_blocked_dates(client, blocked_car, as_customer):
    response = await client.post(
        "/v1/bookings",
        json={"car_id": str(blocked_car.id), "start_date": "2024-06-15", "end_date": "2024-06-16"},
    )
    assert response.status_code == 400


async def test_booking_flow(client, car, as_customer, details_payload):
    created = await client.post(
        "/v1/bookings",
        json={"car_id": str(car.id), "start_date": "2024-06-01", "end_date": "2024-06-03"},
    )
    assert created.status_code == 201
    booking = created.json()
    assert booking["status"] == "pending"
    assert Decimal(booking["total_amount"]) == Decimal("300")

    not_ready = await client.post(f"/v1/bookings/{booking['id']}/finalize")
    assert not_ready.status_code == 400

    details = await client.post(f"/v1/bookings/{booking['id']}/customer-details", json=details_payload)
    assert details.status_code == 201
    assert details.json()["booking_id"] == booking["id"]

    first = await client.post(f"/v1/bookings/{booking['id']}/finalize")
    second = await client.post(f"/v1/bookings/{booking['id']}/finalize")
    assert first.json()["status"] == second.json()["status"] == "confirmed"
    assert second.status_code == 200

    mine = await client.get("/v1/bookings")
    assert [b["id"] for b in mine.json()] == [booking["id"]]
    assert mine.json()[0]["car"]["model"] == "Toyota Innova"


async def test_incomplete_details_rejected(client, car, as_customer, details_payload):
    created = await client.post(
        "/v1/bookings",
        json={"car_id": str(car.id), "start_date": "2024-06-01", "end_date": "2024-06-01"},
    )
    del details_payload["address"]

    response = await client.post(
        f"/v1/bookings/{created.json()['id']}/customer-details", json=details_payload
    )

    assert response.status_code == 400
    assert "address" in response.json()["detail"]


async def test_edit_and_cancel(client, car, as_customer):
    created = await client.post(
        "/v1/bookings",
        json={"car_id": str(car.id), "start_date": "2024-06-01", "end_date": "2024-06-03"},
    )
    booking_id = created.json()["id"]

    edited = await client.patch(
        f"/v1/bookings/{booking_id}/dates",
        json={"start_date": "2024-06-10", "end_date": "2024-06-14"},
    )
    assert Decimal(edited.json()["total_amount"]) == Decimal("500")

    cancelled = await client.post(f"/v1/bookings/{booking_id}/cancel")
    assert cancelled.json()["status"] == "cancelled"

    again = await client.post(f"/v1/bookings/{booking_id}/cancel")
    assert again.status_code == 409


# === Provider ===

async def test_provider_unavailability_and_bookings(
    client, request_session, car, customer_session, provider_session
):
    request_session.current = customer_session
    await client.post(
        "/v1/bookings",
        json={"car_id": str(car.id), "start_date": "2024-06-01", "end_date": "2024-06-03"},
    )

    request_session.current = provider_session
    for window in (("2024-07-01", "2024-07-02"), ("2024-07-10", "2024-07-12")):
        added = await client.post(
            f"/v1/provider/cars/{car.id}/unavailability",
            json={"start_date": window[0], "end_date": window[1]},
        )
        assert added.status_code == 201

    replaced = await client.put(
        f"/v1/provider/cars/{car.id}/unavailability",
        json={"start_date": "2024-08-01", "end_date": "2024-08-05"},
    )
    assert replaced.status_code == 200

    cars = (await client.get("/v1/provider/cars")).json()
    assert [(w["start_date"], w["end_date"]) for w in cars[0]["unavailable_windows"]] == [
        ("2024-08-01", "2024-08-05")
    ]
    assert cars[0]["bookings"][0]["customer_name"] == "Asha Rao"

    bookings = (await client.get("/v1/provider/bookings")).json()
    assert bookings[0]["car_model"] == "Toyota Innova"

    cleared = await client.delete(f"/v1/provider/cars/{car.id}/unavailability")
    assert cleared.json() == {"removed": 1}


async def test_provider_routes_reject_customers(client, car, as_customer):
    response = await client.get("/v1/provider/bookings")
    assert response.status_code == 401


async def test_provider_creates_car_and_uploads_image(client, as_provider, storage_provider):
    created = await client.post(
        "/v1/provider/cars",
        json={
            "model": "Hyundai Creta",
            "year": 2024,
            "license_plate": "JK01EF9999",
            "seats": 5,
            "rate_per_day": "85.00",
        },
    )
    assert created.status_code == 201
    car_id = created.json()["id"]

    uploaded = await client.post(
        f"/v1/provider/cars/{car_id}/image",
        files={"file": ("creta.png", b"\x89PNG-bytes", "image/png")},
    )

    assert uploaded.status_code == 200
    [path] = storage_provider.objects
    assert uploaded.json()["image_url"] == f"https://images.test/{path}"
    assert path.startswith(f"{car_id}/")


# === Auth and activities ===

async def test_signup_creates_profile(client, monkeypatch):
    monkeypatch.setattr(auth_router, "init_firebase", lambda: None)
    monkeypatch.setattr(auth, "create_user", lambda **kwargs: SimpleNamespace(uid="fb-new"))

    response = await client.post(
        "/v1/auth/signup",
        json={
            "email": "new@example.com",
            "password": "secret123",
            "full_name": "New Provider",
            "role": "provider",
        },
    )

    assert response.status_code == 201
    assert response.json()["role"] == "provider"


async def test_me(client, customer_profile):
    app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(
        uid="fb-customer", email="asha@example.com"
    )

    body = (await client.get("/v1/auth/me")).json()

    assert body["uid"] == "fb-customer"
    assert body["profile"]["id"] == str(customer_profile.id)


async def test_activities(client):
    listing = await client.get("/v1/activities")
    assert "shikara-ride" in [a["id"] for a in listing.json()]

    detail = await client.get("/v1/activities/shikara-ride")
    assert detail.json()["duration"] == "2 hours"

    missing = await client.get("/v1/activities/bungee")
    assert missing.status_code == 404


async def test_signup_cleanup_failure_keeps_profile_error(client, monkeypatch):
    class FailingBackend:
        async def insert_profile(self, record):
            raise BackendError("Failed to create profile. Please try again.")

    def delete_fails(uid):
        raise RuntimeError("firebase unavailable")

    app.dependency_overrides[get_backend] = lambda: FailingBackend()
    monkeypatch.setattr(auth_router, "init_firebase", lambda: None)
    monkeypatch.setattr(auth, "create_user", lambda **kwargs: SimpleNamespace(uid="fb-orphan"))
    monkeypatch.setattr(auth, "delete_user", delete_fails)

    response = await client.post(
        "/v1/auth/signup",
        json={"email": "orphan@example.com", "password": "secret123", "full_name": "Orphan"},
    )

    assert response.status_code == 502
    assert response.json() == {"detail": "Failed to create profile. Please try again."}


# === Provider booking stream ===

class ConnectedRequest:
    async def is_disconnected(self) -> bool:
        return False


async def _seed_stream_data():
    """Provider, customer and car in the app's own database."""
    await create_tables()
    suffix = uuid.uuid4().hex[:8]
    async with async_session_factory() as db:
        backend = SqlAlchemyBackend(db, get_change_feed())
        provider = await backend.insert_profile({
            "firebase_uid": f"fb-stream-provider-{suffix}",
            "role": UserRole.PROVIDER,
            "full_name": "Stream Provider",
        })
        customer = await backend.insert_profile({
            "firebase_uid": f"fb-stream-customer-{suffix}",
            "role": UserRole.CUSTOMER,
            "full_name": "Stream Customer",
        })
        car = await backend.insert_car({
            "provider_id": provider.id,
            "model": "Tata Nexon",
            "year": 2023,
            "license_plate": f"JK01{suffix}",
            "seats": 5,
            "rate_per_day": Decimal("70.00"),
        })
    return provider, customer, car


async def test_booking_stream_resends_list_on_change(monkeypatch):
    monkeypatch.setattr(provider_router, "STREAM_KEEPALIVE_SECONDS", 0.01)
    provider, customer, car = await _seed_stream_data()

    response = await stream_bookings(ConnectedRequest(), session_for(provider))
    stream = response.body_iterator
    feed = get_change_feed()

    try:
        first = await anext(stream)
        assert first.startswith("event: bookings\n")
        assert "data: []" in first

        assert await anext(stream) == ": keep-alive\n\n"

        async with async_session_factory() as db:
            booking = await BookingWorkflow(
                SqlAlchemyBackend(db, feed), session_for(customer)
            ).create_booking(car.id, DateRange(date(2024, 9, 1), date(2024, 9, 2)))

        reloaded = await anext(stream)
        assert reloaded.startswith("event: bookings\n")
        assert str(booking.id) in reloaded
        assert "Tata Nexon" in reloaded
    finally:
        await stream.aclose()

    assert feed.subscriber_count("bookings") == 0


async def test_booking_stream_requires_provider(customer_session):
    with pytest.raises(AuthRequiredError):
        await stream_bookings(ConnectedRequest(), customer_session)
