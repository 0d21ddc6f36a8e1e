"""
Google sign-in orchestration.

Turns verified Google claims into a user row and builds the URLs the browser
is sent back to.
"""
from dataclasses import dataclass
from urllib.parse import urlencode

from ielts_backend.logging_config import get_logger
from ielts_backend.models.user import User
from ielts_backend.oauth import GoogleIdentity
from ielts_backend.routes.metrics import track_user_created
from ielts_backend.sentry_config import capture_exception
from ielts_backend.services.user_service import UserService

logger = get_logger(component="login_service")

ERROR_NO_CODE = "no_code"
ERROR_AUTH_FAILED = "auth_failed"


@dataclass
class SignInResult:
    user: User
    user_id: int
    # True until the student has completed the profile form
    is_new: bool
    created: bool


def frontend_url(base_url: str, **params) -> str:
    """
    Append query parameters to the front-end base URL.

    Any trailing slashes on the base are dropped and exactly one "/" is put
    back before the query string. Parameters whose value is None or "" are
    left out; booleans are rendered as "true"/"false".
    """
    query = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        query[key] = value

    url = base_url.rstrip("/") + "/"
    if query:
        url += "?" + urlencode(query)
    return url


def success_redirect_url(base_url: str, result: SignInResult, name: str | None = None) -> str:
    return frontend_url(
        base_url,
        login="success",
        isNew=result.is_new,
        id=result.user_id,
        name=name,
    )


def error_redirect_url(base_url: str, error: str) -> str:
    return frontend_url(base_url, error=error)


async def sign_in(user_service: UserService, identity: GoogleIdentity) -> SignInResult:
    """
    Find or create the user for a verified Google identity.

    Existing users whose Google avatar changed get it refreshed. That update is
    best-effort: a failure is logged and the sign-in still succeeds.
    """
    user, created = await user_service.get_or_create(
        google_id=identity.subject,
        email=identity.email,
        name=identity.name,
        avatar_url=identity.picture
    )

    if created:
        track_user_created()
        return SignInResult(user=user, user_id=user.id, is_new=True, created=True)

    # Read before the avatar update; a rollback expires the instance
    user_id = user.id
    is_new = not user.is_profile_complete

    try:
        await user_service.refresh_avatar(user, identity.picture)
    except Exception as e:
        logger.warning("avatar_refresh_failed", user_id=user_id, error=str(e))
        capture_exception(e)

    return SignInResult(user=user, user_id=user_id, is_new=is_new, created=False)
