"""API Routers for CarHire."""

from carhire.routers.auth import router as auth_router
from carhire.routers.cars import router as cars_router
from carhire.routers.bookings import router as bookings_router
from carhire.routers.provider import router as provider_router
from carhire.routers.activities import router as activities_router

__all__ = [
    "auth_router",
    "cars_router",
    "bookings_router",
    "provider_router",
    "activities_router",
]
