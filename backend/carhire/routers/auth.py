"""Auth router - Firebase sign-up and current user."""

import logging

from fastapi import APIRouter, Depends, status
from firebase_admin import auth

from carhire.core.errors import BackendError, ValidationError
from carhire.core.security import (
    AuthenticatedUser,
    get_backend,
    get_current_user,
    init_firebase,
)
from carhire.schemas.auth import CurrentUserResponse, ProfileResponse, SignupRequest
from carhire.services.backend import BackendDataService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    backend: BackendDataService = Depends(get_backend),
):
    """Create a Firebase account and its profile row.

    The client signs in with Firebase afterwards to obtain an ID token.
    """
    init_firebase()
    try:
        firebase_user = auth.create_user(
            email=data.email,
            password=data.password,
            display_name=data.full_name,
        )
    except auth.EmailAlreadyExistsError:
        raise ValidationError("An account with this email already exists")
    except ValueError as e:
        raise ValidationError(str(e))
    except Exception as e:
        logger.error(f"[AUTH] Firebase sign-up failed: {e}")
        raise BackendError("Failed to create account. Please try again.") from e

    try:
        profile = await backend.insert_profile({
            "firebase_uid": firebase_user.uid,
            "role": data.role,
            "full_name": data.full_name,
            "phone": data.phone,
        })
    except BackendError:
        # Leave no orphaned Firebase account without a profile
        try:
            auth.delete_user(firebase_user.uid)
        except Exception as e:
            logger.error(f"[AUTH] Could not remove Firebase user {firebase_user.uid}: {e}")
        raise

    logger.info(f"[AUTH] Signed up {profile.id} as {profile.role.value}")
    return profile


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    current_user: AuthenticatedUser = Depends(get_current_user),
    backend: BackendDataService = Depends(get_backend),
):
    """Get current authenticated user info."""
    profile = await backend.get_profile_by_uid(current_user.uid)
    return CurrentUserResponse(
        uid=current_user.uid,
        email=current_user.email,
        profile=ProfileResponse.model_validate(profile) if profile else None,
    )
