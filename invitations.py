"""
Invitation lifecycle: invite by email, accept or decline, cancel.

Invitations live at invitations/{event_id}/{invitation_id} and expire
a fixed number of days after they are sent.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from errors import InvitationError, NotFoundError, StoreError, ValidationError
from event_records import with_ids
from models import (
    INVITATION_ACCEPTED,
    INVITATION_DECLINED,
    INVITATION_PENDING,
    User,
    now_ms,
)
from participants import MemberService, require_permission
from store import DocumentStore, Subscription, join_path
from validation import is_valid_email, validate_role

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000


def _is_live(invitation: dict, now: int) -> bool:
    return (invitation.get("expires_at") or 0) > now


def _same_email(a, b) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


class InvitationService:

    def __init__(self, store: DocumentStore, ttl_days: int = 7):
        self.store = store
        self.ttl_ms = ttl_days * DAY_MS
        self._subscriptions: list[Subscription] = []

    @staticmethod
    def _path(event_id: str, invitation_id: str = "") -> str:
        return join_path("invitations", event_id, invitation_id)

    def invite_guest(self, event_id: str, email: str, invited_by: str, role: str = "member") -> dict:
        if not event_id or not email or not invited_by:
            raise ValidationError("Event ID, email, and inviter are required")
        require_permission(self.store, event_id, invited_by, "invite")

        errors = validate_role(role)
        if not is_valid_email(email):
            errors.append("Email address is not valid")
        if role == "owner":
            errors.append("Invitations cannot grant ownership")
        if errors:
            raise ValidationError(errors)

        now = now_ms()
        invitation = {
            "event_id": event_id,
            "email": email.lower().strip(),
            "role": role,
            "invited_by": invited_by,
            "invited_at": now,
            "status": INVITATION_PENDING,
            "expires_at": now + self.ttl_ms,
        }
        try:
            invitation_id = self.store.push(self._path(event_id), invitation)
        except StoreError as e:
            logger.error("Error inviting guest: %s", e)
            raise StoreError("Failed to send invitation") from e

        logger.info("Invited %s to event %s as %s", invitation["email"], event_id, role)
        return {"id": invitation_id, **invitation}

    def get_event_invitations(self, event_id: str) -> list[dict]:
        """Invitations of an event that have not expired yet."""
        if not event_id:
            raise ValidationError("Event ID is required")
        now = now_ms()
        invitations = with_ids(self.store.get(self._path(event_id)))
        return [inv for inv in invitations.values() if _is_live(inv, now)]

    def get_invitation(self, event_id: str, invitation_id: str) -> Optional[dict]:
        value = self.store.get(self._path(event_id, invitation_id))
        if not isinstance(value, dict):
            return None
        return {"id": invitation_id, **value}

    def accept_invitation(self, event_id: str, invitation_id: str, user: User) -> dict:
        if not event_id or not invitation_id or not user:
            raise ValidationError("Event ID, invitation ID, and user are required")

        invitation = self.get_invitation(event_id, invitation_id)
        if not invitation:
            raise NotFoundError("Invitation not found")
        if invitation.get("status") != INVITATION_PENDING:
            raise InvitationError("Invitation already processed")
        if not _is_live(invitation, now_ms()):
            raise InvitationError("Invitation has expired")
        if not _same_email(invitation.get("email"), user.email):
            raise InvitationError("Invitation email does not match user email")

        members = MemberService(self.store, event_id)
        member = members.add_member(user.uid, user.name, user.email, invitation.get("role", "member"))

        self._set_status(event_id, invitation_id, INVITATION_ACCEPTED, "accepted_at")
        logger.info("%s accepted invitation %s to event %s", user.uid, invitation_id, event_id)
        return member

    def decline_invitation(self, event_id: str, invitation_id: str) -> None:
        if not event_id or not invitation_id:
            raise ValidationError("Event ID and invitation ID are required")
        if not self.get_invitation(event_id, invitation_id):
            raise NotFoundError("Invitation not found")
        self._set_status(event_id, invitation_id, INVITATION_DECLINED, "declined_at")

    def _set_status(self, event_id: str, invitation_id: str, status: str, stamp_field: str) -> None:
        path = self._path(event_id, invitation_id)
        self.store.set(join_path(path, "status"), status)
        self.store.set(join_path(path, stamp_field), now_ms())

    def cancel_invitation(self, event_id: str, invitation_id: str, user_id: str) -> None:
        if not event_id or not invitation_id:
            raise ValidationError("Event ID and invitation ID are required")
        require_permission(self.store, event_id, user_id, "invite")
        self.store.delete(self._path(event_id, invitation_id))
        logger.info("Invitation %s to event %s cancelled", invitation_id, event_id)

    def find_invitation_by_email(self, event_id: str, email: str) -> Optional[dict]:
        if not event_id or not email:
            return None
        try:
            invitations = self.get_event_invitations(event_id)
        except StoreError as e:
            logger.error("Error finding invitation: %s", e)
            return None
        for invitation in invitations:
            if _same_email(invitation.get("email"), email) and invitation.get("status") == INVITATION_PENDING:
                return invitation
        return None

    def get_user_pending_invitations(self, email: str) -> list[dict]:
        """Pending, unexpired invitations for an email across all events, newest first."""
        if not email:
            return []

        now = now_ms()
        all_invitations = self.store.get("invitations") or {}
        found = []
        for event_id, event_invitations in all_invitations.items():
            for invitation in with_ids(event_invitations).values():
                if not (_same_email(invitation.get("email"), email)
                        and invitation.get("status") == INVITATION_PENDING
                        and _is_live(invitation, now)):
                    continue

                metadata = self.store.get(join_path("events", event_id, "metadata"))
                if not isinstance(metadata, dict):
                    continue
                found.append({
                    **invitation,
                    "event_id": event_id,
                    "event_name": metadata.get("name") or "Unnamed Event",
                    "event_type": metadata.get("type") or "general",
                    "event_dates": metadata.get("dates"),
                    "event_location": metadata.get("location"),
                })

        return sorted(found, key=lambda inv: inv.get("invited_at") or 0, reverse=True)

    def subscribe_to_invitations(self, event_id: str, callback: Callable[[list], None]) -> Subscription:
        if not event_id:
            raise ValidationError("Event ID is required")

        def handle(value):
            now = now_ms()
            callback([inv for inv in with_ids(value).values() if _is_live(inv, now)])

        subscription = self.store.subscribe(self._path(event_id), handle)
        self._subscriptions.append(subscription)
        return subscription

    def cleanup(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
