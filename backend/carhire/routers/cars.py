"""Cars router - public browsing with advisory availability."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from carhire.core.security import get_backend
from carhire.schemas.car import CarDetailResponse, CarResponse
from carhire.services.availability import DateRange, annotate_cars
from carhire.services.backend import BackendDataService
from carhire.services.booking_workflow import BookingWorkflow

router = APIRouter(prefix="/cars", tags=["cars"])


@router.get("", response_model=List[CarResponse])
async def list_cars(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    available_only: bool = Query(False, description="Hide cars blocked in the range"),
    backend: BackendDataService = Depends(get_backend),
):
    """List cars, each flagged with its availability for the given range.

    Without a complete range every car is reported available.
    """
    requested = DateRange.of(start_date, end_date)
    cars = await backend.list_cars()

    results = []
    for car, available in annotate_cars(cars, requested):
        if available_only and not available:
            continue
        item = CarResponse.model_validate(car)
        item.is_available = available
        results.append(item)
    return results


@router.get("/{car_id}", response_model=CarDetailResponse)
async def get_car(
    car_id: UUID,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    backend: BackendDataService = Depends(get_backend),
):
    """Car detail with its unavailable windows and a quote for the range."""
    car = await backend.get_car(car_id)
    quote = BookingWorkflow.quote(car, DateRange.of(start_date, end_date))

    response = CarDetailResponse.model_validate(car)
    response.is_available = quote.available
    response.day_count = quote.day_count
    response.total_amount = quote.total_amount
    return response
