"""
User profiles at users/{uid}/profile, kept in step with the identity
provider each time a user signs in.
"""
from __future__ import annotations

import logging
from typing import Optional

from models import User, now_ms
from store import DocumentStore, join_path

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES = {
    "theme": "light",
    "notifications": True,
    "email_updates": True,
}


class ProfileService:

    def __init__(self, store: DocumentStore):
        self.store = store

    @staticmethod
    def _path(uid: str, *parts) -> str:
        return join_path("users", uid, "profile", *parts)

    def ensure_profile(self, user: User) -> dict:
        """Create the profile on first sight, otherwise refresh the identity fields."""
        fields = {
            "name": user.name,
            "email": user.email,
            "photo_url": user.photo_url,
            "last_login": now_ms(),
        }
        fields = {k: v for k, v in fields.items() if v is not None}

        existing = self.get_profile(user.uid)
        if existing is None:
            profile = {**fields, "created_at": now_ms(), "preferences": dict(DEFAULT_PREFERENCES)}
            logger.info("Created profile for %s", user.uid)
        else:
            profile = {**existing, **fields}

        self.store.set(self._path(user.uid), profile)
        return profile

    def get_profile(self, uid: str) -> Optional[dict]:
        profile = self.store.get(self._path(uid))
        return profile if isinstance(profile, dict) else None

    def update_preferences(self, uid: str, preferences: dict) -> dict:
        current = (self.get_profile(uid) or {}).get("preferences") or {}
        merged = {**DEFAULT_PREFERENCES, **current, **(preferences or {})}
        self.store.set(self._path(uid, "preferences"), merged)
        return merged
