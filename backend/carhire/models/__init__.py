"""SQLAlchemy models for CarHire."""

from carhire.models.profile import Profile
from carhire.models.car import Car, UnavailabilityWindow
from carhire.models.booking import Booking, CustomerDetails

__all__ = [
    "Profile",
    "Car",
    "UnavailabilityWindow",
    "Booking",
    "CustomerDetails",
]
