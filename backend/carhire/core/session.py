"""Explicit session context.

One ``SessionContext`` per caller (per request on the API side). State only
changes through ``dispatch``; listeners are registered for the duration of a
``with ctx.listen(...)`` block and removed on exit.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional
from uuid import UUID

from carhire.core.errors import AuthRequiredError
from carhire.models.enums import UserRole

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    """Session change notifications."""
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    PROFILE_UPDATED = "profile_updated"


@dataclass(frozen=True)
class SessionUser:
    """Authenticated identity plus the profile it maps to (if one exists)."""

    uid: str
    profile_id: Optional[UUID] = None
    role: Optional[UserRole] = None
    email: Optional[str] = None
    full_name: Optional[str] = None


SessionListener = Callable[[AuthEvent, Optional[SessionUser]], None]


class SessionContext:
    """Holds the current session user and notifies scoped listeners of changes."""

    def __init__(self, user: Optional[SessionUser] = None):
        self._user = user
        self._listeners: list[SessionListener] = []

    @property
    def user(self) -> Optional[SessionUser]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def dispatch(self, event: AuthEvent, user: Optional[SessionUser] = None) -> None:
        """Single entry point for session changes."""
        if event == AuthEvent.SIGNED_OUT:
            self._user = None
        else:
            if user is None:
                raise ValueError(f"{event.value} requires a user")
            self._user = user

        for listener in list(self._listeners):
            listener(event, self._user)

    @contextmanager
    def listen(self, listener: SessionListener) -> Iterator["SessionContext"]:
        """Register ``listener`` for the duration of the block."""
        self._listeners.append(listener)
        try:
            yield self
        finally:
            self._listeners.remove(listener)

    def require_user(self) -> SessionUser:
        if self._user is None:
            raise AuthRequiredError("Please sign in to continue")
        return self._user

    def require_profile(self) -> SessionUser:
        """Authenticated user whose profile row exists."""
        user = self.require_user()
        if user.profile_id is None:
            logger.warning(f"[SESSION] No profile for uid {user.uid}")
            raise AuthRequiredError(
                "Your user profile is not set up properly. Please contact support."
            )
        return user

    def require_role(self, role: UserRole) -> SessionUser:
        user = self.require_profile()
        if user.role != role:
            raise AuthRequiredError(f"A {role.value} account is required for this action")
        return user
