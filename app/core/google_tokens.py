"""Google OAuth access tokens for Firebase Hosting calls.

Stored access tokens are used as-is until a call fails with an expired or
invalid token; the call is then retried once with a refreshed token.
"""

from typing import Awaitable, Callable, TypeVar

import httpx

from app.core.exceptions import AuthenticationError, ConfigurationError, DeployerError
from app.core.users import UserProfileService
from app.utils.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)

EXPIRED_TOKEN_INDICATORS = (
    "invalid_token",
    "expired_token",
    "token_expired",
    "unauthorized",
    "authentication required",
    "invalid_grant",
    "invalid authentication credentials",
    "invalid authentication",
    "authentication credential",
)


def is_token_expired_error(error: BaseException) -> bool:
    """Check whether an error looks like an expired or invalid token."""
    if isinstance(error, AuthenticationError) and error.status_code in (401, 403):
        return True
    message = error.message if isinstance(error, DeployerError) else str(error)
    message = message.lower()
    return any(indicator in message for indicator in EXPIRED_TOKEN_INDICATORS)


class GoogleTokenProvider:
    """Hands out Google access tokens stored on user profiles."""

    def __init__(
        self,
        users: UserProfileService,
        http: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
        token_url: str = "https://oauth2.googleapis.com/token",
    ):
        self.users = users
        self.http = http
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url

    async def refresh(self, user_id: str, refresh_token: str) -> str:
        """Exchange a refresh token for a new access token and store it."""
        if not self.client_id or not self.client_secret:
            raise ConfigurationError("Google OAuth not configured")

        response = await self.http.post(
            self.token_url,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
        )
        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_error or payload.get("error"):
            raise AuthenticationError(
                payload.get("error_description")
                or payload.get("error")
                or "Failed to refresh access token"
            )

        access_token = payload.get("access_token")
        if not access_token:
            raise AuthenticationError("No access token received from refresh")

        updates = {"google_token": access_token}
        if payload.get("refresh_token"):
            updates["google_refresh_token"] = payload["refresh_token"]
        await self.users.update_user_profile(user_id, **updates)

        logger.info("google_tokens.refreshed", user_id=user_id)
        return access_token

    async def with_token_refresh(
        self, user_id: str, fn: Callable[[str], Awaitable[T]]
    ) -> T:
        """Run ``fn`` with the user's access token, refreshing once if it has expired."""
        profile = await self.users.get_user_profile(user_id)
        if profile is None:
            raise ConfigurationError("User profile not found")
        if not profile.google_token:
            raise ConfigurationError("Google account not connected")

        try:
            return await fn(profile.google_token)
        except DeployerError as e:
            if not is_token_expired_error(e):
                raise
            if not profile.google_refresh_token:
                raise AuthenticationError(
                    "Token expired and no refresh token available. "
                    "Please reconnect your Google account."
                ) from e

        logger.info("google_tokens.retrying_with_refresh", user_id=user_id)
        access_token = await self.refresh(user_id, profile.google_refresh_token)
        return await fn(access_token)
