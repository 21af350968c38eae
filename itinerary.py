"""
Free-form itinerary of an event, stored at events/{event_id}/itinerary
as a flat map of field -> value (day plans, notes).
"""
from __future__ import annotations

import logging
from typing import Callable

from errors import StoreError, ValidationError
from store import DocumentStore, Subscription, join_path, split_path

logger = logging.getLogger(__name__)

MAX_FIELD_LENGTH = 5000


class ItineraryService:

    def __init__(self, store: DocumentStore):
        self.store = store
        self._subscriptions: list[Subscription] = []

    @staticmethod
    def _path(event_id: str, field: str = "") -> str:
        return join_path("events", event_id, "itinerary", field)

    def update_itinerary_field(self, event_id: str, field: str, value) -> None:
        """Replace one itinerary field (e.g. 'friday-plan', 'notes')."""
        if not event_id or not field:
            raise ValidationError("Event ID and field are required")
        if len(split_path(field)) != 1:
            raise ValidationError("Itinerary field must be a single key")

        if isinstance(value, str) and len(value) > MAX_FIELD_LENGTH:
            raise ValidationError(f"Itinerary entries cannot exceed {MAX_FIELD_LENGTH} characters")

        try:
            self.store.set(self._path(event_id, field), value)
        except StoreError as e:
            logger.error("Error updating itinerary field: %s", e)
            raise StoreError("Failed to update itinerary") from e

    def get_itinerary(self, event_id: str) -> dict:
        if not event_id:
            raise ValidationError("Event ID is required")
        value = self.store.get(self._path(event_id))
        return value if isinstance(value, dict) else {}

    def subscribe_to_itinerary(self, event_id: str, callback: Callable[[dict], None]) -> Subscription:
        if not event_id:
            raise ValidationError("Event ID is required")

        subscription = self.store.subscribe(
            self._path(event_id), lambda value: callback(value if isinstance(value, dict) else {}))
        self._subscriptions.append(subscription)
        return subscription

    def cleanup(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
