"""
Common plumbing for record collections stored under one event
(events/{event_id}/{collection}/{record_id}).
"""
from __future__ import annotations

import logging
from typing import Callable

from errors import AuthenticationError, NotFoundError
from store import DocumentStore, Subscription, join_path

logger = logging.getLogger(__name__)


def with_ids(records) -> dict:
    """{key: record} from the store, with each record carrying its own id."""
    if not isinstance(records, dict):
        return {}
    return {key: {"id": key, **value} for key, value in records.items() if isinstance(value, dict)}


def require_user(user_id) -> None:
    if not user_id:
        raise AuthenticationError("User must be authenticated")


class EventRecordService:
    collection = ""
    label = "record"

    def __init__(self, store: DocumentStore, event_id: str):
        if not event_id:
            raise ValueError("Event ID is required")
        self.store = store
        self.event_id = event_id
        self.path = join_path("events", event_id, self.collection)
        self._subscriptions: list[Subscription] = []

    def record_path(self, record_id: str) -> str:
        return join_path(self.path, record_id)

    def _get_one(self, record_id: str):
        value = self.store.get(self.record_path(record_id))
        if not isinstance(value, dict):
            return None
        return {"id": record_id, **value}

    def _require_existing(self, record_id: str) -> dict:
        existing = self.store.get(self.record_path(record_id))
        if not isinstance(existing, dict):
            raise NotFoundError(f"{self.label.capitalize()} not found")
        return existing

    def _get_all(self) -> dict:
        return with_ids(self.store.get(self.path))

    def _subscribe(self, callback: Callable[[dict], None]) -> Subscription:
        subscription = self.store.subscribe(self.path, lambda value: callback(with_ids(value)))
        self._subscriptions.append(subscription)
        logger.debug("Subscribed to %s of event %s", self.collection, self.event_id)
        return subscription

    def cleanup(self) -> None:
        """Cancel every subscription this service opened."""
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
