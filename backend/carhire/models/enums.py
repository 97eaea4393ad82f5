"""Enumeration types for the CarHire domain model."""

from enum import Enum


class UserRole(str, Enum):
    """Role fixed at signup; decides which workflows a profile can reach."""
    CUSTOMER = "customer"
    PROVIDER = "provider"


class BookingStatus(str, Enum):
    """Status of a car booking."""
    PENDING = "pending"        # Created, awaiting customer details + payment
    CONFIRMED = "confirmed"    # Finalized, visible as confirmed to the provider
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ChangeType(str, Enum):
    """Row change kinds published on the change feed."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Persist enum values (``"pending"``) rather than member names."""
    return [member.value for member in enum_cls]
