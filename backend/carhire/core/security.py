"""Firebase JWT verification and per-request session context."""

from typing import Any, Optional

import firebase_admin
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth, credentials
from sqlalchemy.ext.asyncio import AsyncSession

from carhire.core.config import get_settings
from carhire.core.database import get_db
from carhire.core.session import AuthEvent, SessionContext, SessionUser
from carhire.services.backend import BackendDataService, SqlAlchemyBackend
from carhire.services.realtime import get_change_feed

settings = get_settings()

# Browsing is public, so a missing header is not an error by itself
security = HTTPBearer(auto_error=False)


def init_firebase() -> None:
    """Initialize the Firebase Admin SDK once."""
    if firebase_admin._apps:
        return
    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
    if settings.google_application_credentials:
        cred = credentials.Certificate(settings.google_application_credentials)
        firebase_admin.initialize_app(cred, options)
    else:
        firebase_admin.initialize_app(options=options)


class AuthenticatedUser:
    """Represents an authenticated user from Firebase JWT."""

    def __init__(
        self,
        uid: str,
        email: Optional[str] = None,
        email_verified: bool = False,
        claims: Optional[dict[str, Any]] = None,
    ):
        self.uid = uid
        self.email = email
        self.email_verified = email_verified
        self.claims = claims or {}


def verify_id_token(token: str) -> AuthenticatedUser:
    """Verify a Firebase ID token.

    This layer NEVER mints JWTs - it only verifies tokens issued by Firebase.
    """
    init_firebase()
    try:
        decoded_token = auth.verify_id_token(token)
    except auth.ExpiredIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except auth.InvalidIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token verification failed: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        email_verified=decoded_token.get("email_verified", False),
        claims=decoded_token,
    )


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[AuthenticatedUser]:
    if credentials is None:
        return None
    return verify_id_token(credentials.credentials)


async def get_backend(db: AsyncSession = Depends(get_db)) -> BackendDataService:
    return SqlAlchemyBackend(db, get_change_feed())


async def get_session_context(
    auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    backend: BackendDataService = Depends(get_backend),
) -> SessionContext:
    """Session for this request: anonymous, or signed in with profile context."""
    session = SessionContext()
    if auth_user is None:
        return session

    profile = await backend.get_profile_by_uid(auth_user.uid)
    session.dispatch(
        AuthEvent.SIGNED_IN,
        SessionUser(
            uid=auth_user.uid,
            email=auth_user.email,
            profile_id=profile.id if profile else None,
            role=profile.role if profile else None,
            full_name=profile.full_name if profile else None,
        ),
    )
    return session


async def get_current_user(
    auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> AuthenticatedUser:
    """Require a verified Firebase identity."""
    if auth_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth_user
