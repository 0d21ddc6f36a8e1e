"""
Browser-facing Google OAuth routes (authorization-code flow).

The callback never answers with an error body: the browser is mid-redirect,
so every outcome is a redirect back to the front-end.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ielts_backend.config import Settings, get_settings
from ielts_backend.database import get_db
from ielts_backend.logging_config import get_logger
from ielts_backend.oauth import GoogleIdentityClient, IdentityProviderError, get_identity_client
from ielts_backend.routes.metrics import track_login
from ielts_backend.sentry_config import capture_exception
from ielts_backend.services.login_service import (
    ERROR_AUTH_FAILED,
    ERROR_NO_CODE,
    error_redirect_url,
    sign_in,
    success_redirect_url,
)
from ielts_backend.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Authentication"])

logger = get_logger(component="auth", flow="callback")


@router.get("/google")
async def login_google(
    settings: Settings = Depends(get_settings),
    google: GoogleIdentityClient = Depends(get_identity_client)
):
    """
    Redirect user to Google OAuth login page.

    Without a configured client id Google would reject the request, so the
    browser goes back to the front-end with error=auth_failed instead.
    """
    try:
        url = google.authorization_url()
    except IdentityProviderError as e:
        logger.error("google_login_unavailable", reason=ERROR_AUTH_FAILED, error=str(e))
        track_login("callback", "not_configured")
        return RedirectResponse(
            url=error_redirect_url(settings.FRONTEND_URL, ERROR_AUTH_FAILED),
            status_code=302
        )

    return RedirectResponse(url=url, status_code=302)


@router.get("/google/callback")
async def google_callback(
    code: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    google: GoogleIdentityClient = Depends(get_identity_client),
    db: AsyncSession = Depends(get_db)
):
    """
    Handle Google OAuth callback (server-side flow).

    1. Exchange the authorization code for the account's claims
    2. Find or create the user by Google subject id
    3. Redirect to the front-end with login=success, isNew, id and name

    Failures redirect with error=no_code or error=auth_failed instead.
    """
    if not code:
        logger.info("google_login_failed", reason=ERROR_NO_CODE)
        track_login("callback", ERROR_NO_CODE)
        return RedirectResponse(
            url=error_redirect_url(settings.FRONTEND_URL, ERROR_NO_CODE),
            status_code=302
        )

    try:
        identity = await google.exchange_code(code)
        result = await sign_in(UserService(db), identity)
    except Exception as e:
        logger.error("google_login_failed", reason=ERROR_AUTH_FAILED, error=str(e))
        capture_exception(e)
        track_login("callback", ERROR_AUTH_FAILED)
        return RedirectResponse(
            url=error_redirect_url(settings.FRONTEND_URL, ERROR_AUTH_FAILED),
            status_code=302
        )

    logger.info(
        "google_login_succeeded",
        user_id=result.user_id,
        is_new=result.is_new,
        created=result.created
    )
    track_login("callback", "success")
    return RedirectResponse(
        url=success_redirect_url(settings.FRONTEND_URL, result, name=identity.name),
        status_code=302
    )
