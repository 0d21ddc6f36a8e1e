"""
Google OAuth 2.0 client.

Builds the consent-screen URL, exchanges authorization codes, fetches the
signed-in account's profile and verifies ID tokens posted by the front-end.
Every provider failure surfaces as IdentityProviderError.
"""
import httpx
from authlib.integrations.httpx_client import AsyncOAuth2Client
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri
from fastapi import Depends
from pydantic import BaseModel

from ielts_backend.config import Settings, get_settings

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"


class IdentityProviderError(Exception):
    """Google rejected the request or could not be reached."""


class GoogleIdentity(BaseModel):
    """Verified claims about a Google account."""
    subject: str
    email: str
    name: str = ""
    picture: str | None = None


def identity_from_claims(claims: dict) -> GoogleIdentity:
    """
    Normalise userinfo/tokeninfo claims.

    The v2 userinfo endpoint calls the subject "id", OpenID Connect calls it "sub".
    """
    subject = claims.get("sub") or claims.get("id")
    email = claims.get("email")

    if not subject or not email:
        raise IdentityProviderError("Google did not return a subject id and email")

    return GoogleIdentity(
        subject=str(subject),
        email=email,
        name=(claims.get("name") or "").strip(),
        picture=claims.get("picture") or None,
    )


class GoogleIdentityClient:
    """Thin wrapper over authlib's httpx OAuth2 client for Google."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.client_id = settings.GOOGLE_CLIENT_ID
        self.client_secret = settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = settings.GOOGLE_REDIRECT_URI
        self.scope = settings.GOOGLE_SCOPES
        self.timeout = settings.GOOGLE_HTTP_TIMEOUT
        # Swappable for httpx.MockTransport in tests
        self.transport = transport

    def _oauth_client(self) -> AsyncOAuth2Client:
        return AsyncOAuth2Client(
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_uri=self.redirect_uri,
            scope=self.scope,
            timeout=self.timeout,
            transport=self.transport,
        )

    def authorization_url(self) -> str:
        """
        URL of Google's consent screen for the authorization-code flow.

        Raises:
            IdentityProviderError: GOOGLE_CLIENT_ID is not configured.
        """
        if not self.client_id:
            raise IdentityProviderError("GOOGLE_CLIENT_ID is not configured")
        return prepare_grant_uri(
            GOOGLE_AUTHORIZE_URL,
            client_id=self.client_id,
            response_type="code",
            redirect_uri=self.redirect_uri,
            scope=self.scope,
        )

    async def exchange_code(self, code: str) -> GoogleIdentity:
        """
        Exchange an authorization code and fetch the account's claims.

        Raises:
            IdentityProviderError: on network errors, a rejected code or a
                non-2xx response from either endpoint.
        """
        try:
            async with self._oauth_client() as client:
                token = await client.fetch_token(
                    GOOGLE_TOKEN_URL,
                    grant_type="authorization_code",
                    code=code,
                )
                if not token.get("access_token"):
                    raise IdentityProviderError("Token response carried no access token")

                response = await client.get(GOOGLE_USERINFO_URL)
                response.raise_for_status()
                claims = response.json()
        except IdentityProviderError:
            raise
        except Exception as e:
            raise IdentityProviderError(f"Google code exchange failed: {e}") from e

        return identity_from_claims(claims)

    async def verify_id_token(self, id_token: str) -> GoogleIdentity:
        """
        Validate an ID token with Google's tokeninfo endpoint.

        The token must have been issued to our client id when one is configured.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    GOOGLE_TOKENINFO_URL,
                    params={"id_token": id_token},
                )
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"Google tokeninfo unreachable: {e}") from e

        if response.status_code != 200:
            raise IdentityProviderError("Invalid Google token")

        try:
            claims = response.json()
        except ValueError as e:
            raise IdentityProviderError("Google tokeninfo returned a non-JSON body") from e

        if self.client_id and claims.get("aud") != self.client_id:
            raise IdentityProviderError("Google token was issued to another client")

        return identity_from_claims(claims)


def get_identity_client(settings: Settings = Depends(get_settings)) -> GoogleIdentityClient:
    """FastAPI dependency building the Google client from settings."""
    return GoogleIdentityClient(settings)
