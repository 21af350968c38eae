"""
Event members: who belongs to an event, their role, and the
permissions that role grants.

Members live at events/{event_id}/members/{member_id}. Account holders
use their auth uid as member id; guests without an account get a
generated id. A member record is only ever changed by a role update.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from errors import NotFoundError, PermissionDeniedError, StoreError, ValidationError
from event_records import require_user
from models import get_role_permissions, now_ms
from store import DocumentStore, Subscription, generate_push_id, join_path
from validation import is_valid_email, validate_role

logger = logging.getLogger(__name__)


def members_path(event_id: str) -> str:
    return join_path("events", event_id, "members")


def get_member(store: DocumentStore, event_id: str, member_id: str) -> Optional[dict]:
    if not event_id or not member_id:
        return None
    member = store.get(join_path(members_path(event_id), member_id))
    return member if isinstance(member, dict) else None


def check_permission(store: DocumentStore, event_id: str, user_id: str, permission: str) -> bool:
    try:
        member = get_member(store, event_id, user_id)
    except StoreError as e:
        logger.warning("Permission check failed for %s on %s: %s", user_id, event_id, e)
        return False
    if not member:
        return False
    return permission in (member.get("permissions") or [])


def require_permission(store: DocumentStore, event_id: str, user_id: str, permission: str) -> None:
    require_user(user_id)
    if not check_permission(store, event_id, user_id, permission):
        logger.info("Denied %s permission to %s on event %s", permission, user_id, event_id)
        raise PermissionDeniedError("Permission denied")


def member_record(name: str, email: str, role: str, **extra) -> dict:
    return {
        "name": name,
        "email": email or "",
        "role": role,
        "joined_at": now_ms(),
        "permissions": get_role_permissions(role),
        **extra,
    }


class MemberService:

    def __init__(self, store: DocumentStore, event_id: str):
        if not event_id:
            raise ValueError("Event ID is required")
        self.store = store
        self.event_id = event_id
        self.path = members_path(event_id)
        self._subscriptions: list[Subscription] = []

    def get_members(self) -> dict:
        members = self.store.get(self.path)
        return members if isinstance(members, dict) else {}

    def get_member(self, member_id: str) -> Optional[dict]:
        return get_member(self.store, self.event_id, member_id)

    def add_member(self, user_id: str, name: str, email: str, role: str = "member") -> dict:
        """Add an account holder and list the event under their user record."""
        errors = validate_role(role)
        if errors:
            raise ValidationError(errors)

        member = member_record(name, email, role)
        self.store.set(join_path(self.path, user_id), member)
        self.store.set(join_path("users", user_id, "events", self.event_id),
                       {"role": role, "joined_at": member["joined_at"]})
        logger.info("Member %s joined event %s as %s", user_id, self.event_id, role)
        return member

    def add_guest(self, name: str, added_by: str, email: Optional[str] = None, role: str = "member") -> dict:
        """Add someone without an account under a generated member id."""
        require_permission(self.store, self.event_id, added_by, "invite")

        errors = validate_role(role)
        if not name or not str(name).strip():
            errors.append("Guest name is required")
        if email and not is_valid_email(email):
            errors.append("Guest email is not valid")
        if role == "owner":
            errors.append("Guests cannot be owners")
        if errors:
            raise ValidationError(errors)

        member_id = f"guest_{generate_push_id()}"
        member = member_record(str(name).strip(), (email or "").lower().strip(), role,
                               guest=True, added_by=added_by)
        self.store.set(join_path(self.path, member_id), member)
        logger.info("Guest %s added to event %s", member_id, self.event_id)
        return {"id": member_id, **member}

    def update_role(self, member_id: str, role: str, user_id: str) -> dict:
        require_permission(self.store, self.event_id, user_id, "admin")

        errors = validate_role(role)
        if role == "owner":
            errors.append("Ownership cannot be assigned")
        if errors:
            raise ValidationError(errors)

        member = self.get_member(member_id)
        if not member:
            raise NotFoundError("Member not found")
        if member.get("role") == "owner":
            raise PermissionDeniedError("The owner's role cannot be changed")

        updated = {**member, "role": role, "permissions": get_role_permissions(role)}
        self.store.set(join_path(self.path, member_id), updated)
        if not member.get("guest"):
            self.store.set(join_path("users", member_id, "events", self.event_id, "role"), role)

        logger.info("Member %s of event %s is now %s", member_id, self.event_id, role)
        return {"id": member_id, **updated}

    def remove_member(self, member_id: str, user_id: str) -> None:
        require_permission(self.store, self.event_id, user_id, "admin")

        member = self.get_member(member_id)
        if not member:
            raise NotFoundError("Member not found")
        if member.get("role") == "owner":
            raise PermissionDeniedError("The event owner cannot be removed")

        self.store.delete(join_path(self.path, member_id))
        if not member.get("guest"):
            self.store.delete(join_path("users", member_id, "events", self.event_id))
        logger.info("Member %s removed from event %s by %s", member_id, self.event_id, user_id)

    def subscribe_members(self, callback: Callable[[dict], None]) -> Subscription:
        subscription = self.store.subscribe(
            self.path, lambda value: callback(value if isinstance(value, dict) else {}))
        self._subscriptions.append(subscription)
        return subscription

    def cleanup(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
