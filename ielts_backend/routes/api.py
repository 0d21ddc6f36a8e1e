"""
JSON API routes: ID-token sign-in, profile completion and the admin user list.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ielts_backend.database import get_db
from ielts_backend.logging_config import get_logger
from ielts_backend.oauth import GoogleIdentityClient, IdentityProviderError, get_identity_client
from ielts_backend.routes.metrics import track_login, track_profile_completed
from ielts_backend.schemas import GoogleTokenRequest, GoogleUser, ProfileUpdateRequest, UserOut
from ielts_backend.sentry_config import capture_exception
from ielts_backend.services.login_service import sign_in
from ielts_backend.services.user_service import UserService

router = APIRouter(prefix="/api", tags=["API"])

logger = get_logger(component="api")


async def _store_failure(db: AsyncSession, event: str, error: Exception) -> HTTPException:
    await db.rollback()
    logger.error(event, error=str(error))
    capture_exception(error)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Database error"
    )


@router.post("/auth/google")
async def google_login_with_token(
    request: Optional[GoogleTokenRequest] = None,
    google: GoogleIdentityClient = Depends(get_identity_client),
    db: AsyncSession = Depends(get_db)
):
    """
    Sign in with a Google ID token obtained by the front-end.

    1. Validates the token with Google's tokeninfo endpoint
    2. Finds or creates the user
    3. Returns the user's id and Google profile
    """
    if request is None or not request.token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Token is required"
        )

    try:
        identity = await google.verify_id_token(request.token)
    except IdentityProviderError as e:
        logger.info("google_login_failed", flow="id_token", error=str(e))
        track_login("id_token", "invalid_token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Google token"
        )

    try:
        result = await sign_in(UserService(db), identity)
    except SQLAlchemyError as e:
        track_login("id_token", "store_error")
        raise await _store_failure(db, "google_login_failed", e)

    logger.info(
        "google_login_succeeded",
        flow="id_token",
        user_id=result.user_id,
        is_new=result.is_new
    )
    track_login("id_token", "success")

    user = GoogleUser(
        id=result.user_id,
        email=identity.email,
        name=identity.name,
        picture=identity.picture
    )
    return {
        "success": True,
        "isNew": result.is_new,
        "user": user.model_dump()
    }


@router.post("/profile")
async def complete_profile(
    request: Optional[ProfileUpdateRequest] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Save the profile form and mark the profile complete.

    Returns 400 without an id and 404 for an unknown id.
    """
    if request is None or request.id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User id is required"
        )

    user_service = UserService(db)
    try:
        user = await user_service.complete_profile(
            request.id,
            **request.model_dump(exclude={"id"}, exclude_none=True)
        )
    except SQLAlchemyError as e:
        raise await _store_failure(db, "profile_update_failed", e)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    logger.info("profile_completed", user_id=user.id)
    track_profile_completed()

    return {
        "success": True,
        "user": UserOut.model_validate(user).model_dump(mode="json")
    }


@router.get("/users")
async def list_users(db: AsyncSession = Depends(get_db)):
    """
    List every user, newest first.

    Intended for the admin view; no filtering or pagination.
    """
    user_service = UserService(db)
    try:
        users = await user_service.list_all()
    except SQLAlchemyError as e:
        raise await _store_failure(db, "list_users_failed", e)

    return {
        "success": True,
        "count": len(users),
        "users": [UserOut.model_validate(u).model_dump(mode="json") for u in users]
    }
