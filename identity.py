"""
Identity provider adapter: resolves a bearer token to the signed-in
user's id and profile fields. Sign-in itself happens in the client.
"""
from __future__ import annotations

import logging

from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

from errors import AuthenticationError
from models import User

logger = logging.getLogger(__name__)


def bearer_token(header_value) -> str:
    if not header_value:
        raise AuthenticationError("User must be authenticated")
    scheme, _, token = header_value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    return token.strip()


class FirebaseIdentityProvider:
    """Verifies Firebase Authentication ID tokens."""

    def __init__(self, app=None):
        self._app = app

    def verify(self, token: str) -> User:
        try:
            claims = auth.verify_id_token(token, app=self._app)
        except (ValueError, FirebaseError) as e:
            logger.warning("Rejected ID token: %s", e)
            raise AuthenticationError("Invalid or expired credentials") from e

        return User(
            uid=claims["uid"],
            email=claims.get("email", ""),
            display_name=claims.get("name"),
            photo_url=claims.get("picture"),
        )
