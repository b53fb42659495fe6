"""Firebase ID token verification.

The Firebase app handle is created on first use by the verifier that owns
it, never at import time.
"""

import asyncio
from typing import Protocol

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin import exceptions as firebase_exceptions

from app.core.exceptions import AuthenticationError
from app.utils.logging import get_logger

logger = get_logger(__name__)

FIREBASE_APP_NAME = "deployer"


class TokenVerifier(Protocol):
    """Resolves a bearer token to a user id."""

    async def verify(self, id_token: str) -> str: ...

    def close(self) -> None: ...


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens with firebase-admin."""

    def __init__(
        self,
        project_id: str | None = None,
        app: firebase_admin.App | None = None,
    ):
        self._project_id = project_id
        self._app = app

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            options = {"projectId": self._project_id} if self._project_id else None
            self._app = firebase_admin.initialize_app(
                credentials.ApplicationDefault(),
                options,
                name=FIREBASE_APP_NAME,
            )
        return self._app

    async def verify(self, id_token: str) -> str:
        """Verify a token and return the Firebase uid."""
        try:
            decoded = await asyncio.to_thread(
                auth.verify_id_token, id_token, app=self._get_app()
            )
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            logger.info("auth.token_rejected", reason=type(e).__name__)
            raise AuthenticationError("Unauthorized") from e
        return decoded["uid"]

    def close(self) -> None:
        if self._app is not None:
            firebase_admin.delete_app(self._app)
            self._app = None
