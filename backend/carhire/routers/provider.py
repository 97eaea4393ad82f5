"""Provider router - car listings, unavailability, images and incoming bookings."""

import json
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse

from carhire.core.database import async_session_factory
from carhire.core.security import get_backend, get_session_context
from carhire.core.session import SessionContext
from carhire.models.enums import UserRole
from carhire.schemas.car import (
    CarCreate,
    CarResponse,
    CarUpdate,
    ProviderCarResponse,
    UnavailabilityRequest,
    UnavailabilityWindowResponse,
)
from carhire.schemas.booking import ProviderBookingResponse
from carhire.services.availability import DateRange
from carhire.services.backend import BackendDataService, SqlAlchemyBackend
from carhire.services.provider import ProviderService
from carhire.services.realtime import TableWatcher, get_change_feed
from carhire.services.storage import StorageService, get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/provider", tags=["provider"])

# Seconds between keep-alive comments on an idle stream
STREAM_KEEPALIVE_SECONDS = 15.0


def get_storage() -> StorageService:
    return get_storage_service()


def get_provider_service(
    backend: BackendDataService = Depends(get_backend),
    session: SessionContext = Depends(get_session_context),
    storage: StorageService = Depends(get_storage),
) -> ProviderService:
    return ProviderService(backend, session, storage)


# === Cars ===

@router.get("/cars", response_model=List[ProviderCarResponse])
async def list_my_cars(service: ProviderService = Depends(get_provider_service)):
    """The provider's cars with their windows and bookings."""
    return await service.list_cars_with_bookings()


@router.post("/cars", response_model=CarResponse, status_code=status.HTTP_201_CREATED)
async def create_car(
    data: CarCreate,
    service: ProviderService = Depends(get_provider_service),
):
    return await service.create_car(data)


@router.patch("/cars/{car_id}", response_model=CarResponse)
async def update_car(
    car_id: UUID,
    data: CarUpdate,
    service: ProviderService = Depends(get_provider_service),
):
    return await service.update_car(car_id, data)


@router.post("/cars/{car_id}/image", response_model=CarResponse)
async def upload_car_image(
    car_id: UUID,
    file: UploadFile = File(...),
    service: ProviderService = Depends(get_provider_service),
):
    """Upload a car photo; the car's image URL is replaced."""
    content = await file.read()
    return await service.upload_car_image(
        car_id,
        file.filename or "image",
        content,
        file.content_type or "application/octet-stream",
    )


# === Unavailability ===

@router.put("/cars/{car_id}/unavailability", response_model=UnavailabilityWindowResponse)
async def set_unavailability(
    car_id: UUID,
    data: UnavailabilityRequest,
    service: ProviderService = Depends(get_provider_service),
):
    """Replace all unavailable windows with one range."""
    return await service.set_unavailability(car_id, DateRange.of(data.start_date, data.end_date))


@router.post(
    "/cars/{car_id}/unavailability",
    response_model=UnavailabilityWindowResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_unavailability(
    car_id: UUID,
    data: UnavailabilityRequest,
    service: ProviderService = Depends(get_provider_service),
):
    """Block one more range, keeping existing windows."""
    return await service.add_unavailability(car_id, DateRange.of(data.start_date, data.end_date))


@router.delete("/cars/{car_id}/unavailability")
async def clear_unavailability(
    car_id: UUID,
    service: ProviderService = Depends(get_provider_service),
):
    removed = await service.clear_unavailability(car_id)
    return {"removed": removed}


# === Bookings ===

@router.get("/bookings", response_model=List[ProviderBookingResponse])
async def list_bookings(service: ProviderService = Depends(get_provider_service)):
    """Bookings on the provider's cars, latest start date first."""
    return await service.list_bookings()


def _sse(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(jsonable_encoder(data))}\n\n"


@router.get("/bookings/stream")
async def stream_bookings(
    request: Request,
    session: SessionContext = Depends(get_session_context),
):
    """Server-sent events: the full booking list, re-sent on every booking change."""
    session.require_role(UserRole.PROVIDER)
    feed = get_change_feed()

    async def load() -> list:
        async with async_session_factory() as db:
            service = ProviderService(SqlAlchemyBackend(db, feed), session)
            return await service.list_bookings()

    async def event_stream():
        async with TableWatcher(feed, "bookings") as watcher:
            yield _sse("bookings", await load())
            while not await request.is_disconnected():
                change = await watcher.next_change(timeout=STREAM_KEEPALIVE_SECONDS)
                if change is None:
                    yield ": keep-alive\n\n"
                    continue
                logger.debug(f"[REALTIME] bookings {change.change_type.value}, reloading")
                yield _sse("bookings", await load())

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
