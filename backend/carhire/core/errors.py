"""Domain error taxonomy.

Every error carries a human-readable ``message`` that the API returns as
``{"detail": message}``, the same body shape FastAPI uses for HTTPException.
"""

from fastapi import status


class CarHireError(Exception):
    """Base class for errors surfaced to the caller of a user-triggered action."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CarHireError):
    """Missing or inconsistent input: dates, car selection, form fields."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(ValidationError):
    """Booking status change not permitted by the booking state machine."""

    status_code = status.HTTP_409_CONFLICT


class AuthRequiredError(CarHireError):
    """Operation attempted without an authenticated session (or with the wrong role)."""

    status_code = status.HTTP_401_UNAUTHORIZED


class BackendError(CarHireError):
    """The data backend rejected or failed a read or write."""

    status_code = status.HTTP_502_BAD_GATEWAY


class NotFoundError(BackendError):
    """A referenced record does not exist (or is not visible to the caller)."""

    status_code = status.HTTP_404_NOT_FOUND
