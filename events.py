"""
Event lifecycle: create, read, update, delete, and live updates.

An event is stored as one subtree at events/{event_id} with metadata,
settings, members, itinerary, meals and expenses. Each member also has
the event listed under users/{uid}/events/{event_id}.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from errors import NotFoundError, PermissionDeniedError, StoreError, ValidationError
from event_records import require_user
from event_templates import get_template
from models import User, now_ms
from participants import check_permission, get_member, member_record, members_path, require_permission
from store import DocumentStore, Subscription, join_path
from validation import validate_event

logger = logging.getLogger(__name__)

METADATA_FIELDS = ("name", "description", "dates", "location", "type")


class EventService:

    def __init__(self, store: DocumentStore):
        self.store = store
        self._subscriptions: list[Subscription] = []

    def create_event(self, data: dict, user: User, template: Optional[str] = None) -> dict:
        """
        Create an event owned by user.

        The template (defaults to the event type) seeds settings and the
        itinerary notes; explicit privacy/editing flags in data win.
        """
        require_user(user and user.uid)
        errors = validate_event(data)
        if errors:
            raise ValidationError(errors)

        preset = get_template(template or data.get("type") or "general")
        settings = preset["default_settings"]
        if data.get("privacy"):
            settings["privacy"] = data["privacy"]
        if "allow_editing" in data:
            settings["allow_editing"] = data["allow_editing"] is not False
        if "require_approval" in data:
            settings["require_approval"] = bool(data["require_approval"])

        now = now_ms()
        event = {
            "metadata": {
                "name": data["name"].strip(),
                "description": data.get("description") or "",
                "dates": data["dates"],
                "location": data.get("location") or "",
                "type": data.get("type") or "general",
                "created_by": user.uid,
                "created_at": now,
                "updated_at": now,
            },
            "settings": settings,
            "members": {
                user.uid: member_record(user.name, user.email, "owner"),
            },
            "itinerary": {
                "notes": preset["sample_data"].get("itinerary", {}).get("notes", ""),
                "days": {},
            },
            "meals": {},
            "expenses": {},
        }

        try:
            event_id = self.store.push("events", event)
            self.add_event_to_user(user.uid, event_id, "owner")
        except StoreError as e:
            logger.error("Error creating event: %s", e)
            raise

        logger.info("Event %s created by %s", event_id, user.uid)
        return {"event_id": event_id, "event": event}

    def add_event_to_user(self, user_id: str, event_id: str, role: str = "member") -> None:
        self.store.set(join_path("users", user_id, "events", event_id),
                       {"role": role, "joined_at": now_ms()})

    def get_user_events(self, user_id: str) -> list[dict]:
        user_events = self.store.get(join_path("users", user_id, "events"))
        if not isinstance(user_events, dict):
            return []
        return self._with_metadata(user_events)

    def _with_metadata(self, user_events: dict) -> list[dict]:
        events = []
        for event_id, membership in user_events.items():
            metadata = self.store.get(join_path("events", event_id, "metadata"))
            if not isinstance(metadata, dict):
                continue
            membership = membership if isinstance(membership, dict) else {}
            events.append({
                "id": event_id,
                **metadata,
                "user_role": membership.get("role"),
                "joined_at": membership.get("joined_at"),
            })
        return events

    def get_event(self, event_id: str) -> dict:
        event = self.store.get(join_path("events", event_id))
        if not isinstance(event, dict):
            raise NotFoundError("Event not found")
        return {"id": event_id, **event}

    def update_event(self, event_id: str, updates: dict, user: User) -> dict:
        """Merge metadata updates over the stored metadata and write it back whole."""
        require_user(user and user.uid)
        require_permission(self.store, event_id, user.uid, "write")

        path = join_path("events", event_id, "metadata")
        existing = self.store.get(path)
        if not isinstance(existing, dict):
            raise NotFoundError("Event not found")

        changes = {k: v for k, v in (updates or {}).items() if k in METADATA_FIELDS}
        merged = {**existing, **changes}
        errors = validate_event(merged)
        if errors:
            raise ValidationError(errors)

        merged["updated_at"] = now_ms()
        self.store.set(path, merged)
        logger.info("Event %s updated by %s", event_id, user.uid)
        return merged

    def delete_event(self, event_id: str, user: User) -> None:
        require_user(user and user.uid)
        member = get_member(self.store, event_id, user.uid)
        if not member or member.get("role") != "owner":
            raise PermissionDeniedError("Only event owners can delete events")

        members = self.store.get(members_path(event_id)) or {}
        for member_id, record in members.items():
            if isinstance(record, dict) and record.get("guest"):
                continue
            self.store.delete(join_path("users", member_id, "events", event_id))

        self.store.delete(join_path("events", event_id))
        self.store.delete(join_path("invitations", event_id))
        logger.info("Event %s deleted by %s", event_id, user.uid)

    def check_permission(self, event_id: str, user_id: str, permission: str) -> bool:
        return check_permission(self.store, event_id, user_id, permission)

    def subscribe_to_event(self, event_id: str, callback: Callable[[Optional[dict]], None]) -> Subscription:
        """callback receives the whole event, or None once it no longer exists."""
        def handle(value):
            callback({"id": event_id, **value} if isinstance(value, dict) else None)

        subscription = self.store.subscribe(join_path("events", event_id), handle)
        self._subscriptions.append(subscription)
        return subscription

    def subscribe_to_user_events(self, user_id: str, callback: Callable[[list], None]) -> Subscription:
        def handle(value):
            callback(self._with_metadata(value) if isinstance(value, dict) else [])

        subscription = self.store.subscribe(join_path("users", user_id, "events"), handle)
        self._subscriptions.append(subscription)
        return subscription

    def cleanup(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
