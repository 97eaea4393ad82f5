"""Shared fixtures: in-memory SQLite per test, profiles, cars and sessions."""

import os

# Settings are read at import time, so the environment is set first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DEBUG"] = "true"
os.environ["FIREBASE_PROJECT_ID"] = "carhire-test"
os.environ["STORAGE_PROVIDER"] = "s3"
os.environ["S3_BUCKET_NAME"] = "carhire-test-images"
os.environ["AWS_ACCESS_KEY_ID"] = "test"
os.environ["AWS_SECRET_ACCESS_KEY"] = "test"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:5173"

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

import carhire.models  # noqa: F401
from carhire.core.database import Base, engine_options
from carhire.models.enums import UserRole
from carhire.services.backend import SqlAlchemyBackend
from carhire.services.realtime import ChangeFeed
from carhire.services.storage import StorageService
from tests_support import InMemoryStorageProvider, session_for

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine():
    engine = create_async_engine(TEST_DATABASE_URL, **engine_options(TEST_DATABASE_URL))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def backend(db, feed):
    return SqlAlchemyBackend(db, feed)


@pytest.fixture
def storage_provider():
    return InMemoryStorageProvider()


@pytest.fixture
def storage(storage_provider):
    return StorageService(
        storage_provider,
        allowed_mime_types={"image/jpeg", "image/png"},
        max_upload_size_mb=1,
    )


@pytest.fixture
async def provider_profile(backend):
    return await backend.insert_profile({
        "firebase_uid": "fb-provider",
        "role": UserRole.PROVIDER,
        "full_name": "Kashmir Wheels",
        "phone": "+91 90000 00001",
    })


@pytest.fixture
async def customer_profile(backend):
    return await backend.insert_profile({
        "firebase_uid": "fb-customer",
        "role": UserRole.CUSTOMER,
        "full_name": "Asha Rao",
        "phone": "+91 90000 00002",
    })


@pytest.fixture
async def other_customer_profile(backend):
    return await backend.insert_profile({
        "firebase_uid": "fb-customer-2",
        "role": UserRole.CUSTOMER,
        "full_name": "Imran Shah",
    })


@pytest.fixture
def provider_session(provider_profile):
    return session_for(provider_profile)


@pytest.fixture
def customer_session(customer_profile):
    return session_for(customer_profile, email="asha@example.com")


@pytest.fixture
def other_customer_session(other_customer_profile):
    return session_for(other_customer_profile)


@pytest.fixture
async def car(backend, provider_profile):
    return await backend.insert_car({
        "provider_id": provider_profile.id,
        "model": "Toyota Innova",
        "year": 2022,
        "license_plate": "JK01AB1234",
        "seats": 7,
        "rate_per_day": Decimal("100.00"),
    })


@pytest.fixture
async def blocked_car(backend, provider_profile):
    """Car blocked 2024-06-10 through 2024-06-15."""
    car = await backend.insert_car({
        "provider_id": provider_profile.id,
        "model": "Mahindra Thar",
        "year": 2023,
        "license_plate": "JK01CD5678",
        "seats": 4,
        "rate_per_day": Decimal("150.00"),
    })
    await backend.insert_unavailability({
        "car_id": car.id,
        "start_date": date(2024, 6, 10),
        "end_date": date(2024, 6, 15),
        "is_available": False,
    })
    return await backend.get_car(car.id)


@pytest.fixture
def details_payload():
    return {
        "full_name": "Asha Rao",
        "phone": "+91 90000 00002",
        "email": "asha@example.com",
        "address": "12 Residency Road",
        "state": "Jammu and Kashmir",
        "current_stay": "Hotel Dal View, Srinagar",
        "emergency_contact": "+91 90000 00003",
        "emergency_relation": "Sister",
    }
