"""
Shared records and constants for the event planner.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

ROLE_PERMISSIONS = {
    "owner": ["read", "write", "delete", "invite", "admin"],
    "admin": ["read", "write", "invite", "admin"],
    "editor": ["read", "write"],
    "member": ["read", "write"],
    "viewer": ["read"],
}

VALID_ROLES = tuple(ROLE_PERMISSIONS)

INVITATION_PENDING = "pending"
INVITATION_ACCEPTED = "accepted"
INVITATION_DECLINED = "declined"

SPLIT_ALL = "all"
SPLIT_SELECT = "select"

DEFAULT_CATEGORY = "other"


def get_role_permissions(role: str) -> list[str]:
    """Permissions for a role; unknown roles get viewer rights."""
    return list(ROLE_PERMISSIONS.get(role, ROLE_PERMISSIONS["viewer"]))


def now_ms() -> int:
    """Epoch milliseconds, the timestamp unit stored in every record."""
    return int(time.time() * 1000)


@dataclass
class User:
    """Authenticated user as reported by the identity provider"""
    uid: str
    email: str = ""
    display_name: Optional[str] = None
    photo_url: Optional[str] = None

    @property
    def name(self) -> str:
        if self.display_name:
            return self.display_name
        if self.email:
            return self.email.split("@")[0]
        return "User"
