"""Services for CarHire."""

from carhire.services.availability import DateRange, is_available, UNKNOWN_AVAILABILITY_DEFAULT
from carhire.services.pricing import compute_amount, day_count
from carhire.services.backend import BackendDataService, SqlAlchemyBackend
from carhire.services.booking_workflow import BookingWorkflow
from carhire.services.provider import ProviderService
from carhire.services.realtime import ChangeFeed, get_change_feed
from carhire.services.storage import StorageService, get_storage_service

__all__ = [
    "DateRange",
    "is_available",
    "UNKNOWN_AVAILABILITY_DEFAULT",
    "compute_amount",
    "day_count",
    "BackendDataService",
    "SqlAlchemyBackend",
    "BookingWorkflow",
    "ProviderService",
    "ChangeFeed",
    "get_change_feed",
    "StorageService",
    "get_storage_service",
]
