"""
Document store access for the event planner.

Every service talks to the hosted database through the small
DocumentStore contract below: get/set/push/delete on slash-separated
paths plus subscribe-for-changes. Two backends implement it:

    FirebaseStore - Firebase Realtime Database via firebase_admin.db
    MemoryStore   - thread-safe in-process tree, used by tests and local runs

Values follow Realtime Database rules: writing None removes the path,
empty objects are never stored, and a read of a missing path gives None.
"""
from __future__ import annotations

import copy
import logging
import random
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from firebase_admin import db
from firebase_admin.exceptions import FirebaseError

from errors import StoreError

logger = logging.getLogger(__name__)

PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"


# ------------------ PATHS & TREES ------------------

def split_path(path: str) -> list[str]:
    return [part for part in str(path or "").split("/") if part]


def join_path(*parts) -> str:
    return "/".join(p for part in parts for p in split_path(part))


def _clean(value):
    """Deep copy of value with None leaves and empty objects dropped."""
    if isinstance(value, dict):
        cleaned = {}
        for key, child in value.items():
            child = _clean(child)
            if child is not None:
                cleaned[str(key)] = child
        return cleaned or None
    return copy.deepcopy(value)


def set_in(tree, parts: list[str], value):
    """Write value at parts inside tree and return the new root."""
    value = _clean(value)
    if not parts:
        return value

    root = tree if isinstance(tree, dict) else {}
    stack = [root]
    node = root
    for key in parts[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
        stack.append(node)

    if value is None:
        node.pop(parts[-1], None)
    else:
        node[parts[-1]] = value

    # drop containers emptied by this write
    for depth in range(len(parts) - 1, 0, -1):
        if not stack[depth]:
            stack[depth - 1].pop(parts[depth - 1], None)

    return root or None


def get_in(tree, parts: list[str]):
    node = tree
    for key in parts:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def apply_event(current, event_type: str, path: str, data):
    """
    Fold a Realtime Database listener event into a local copy of the
    watched subtree. 'put' replaces the value at path, 'patch' merges
    the given children under path.
    """
    parts = split_path(path)
    if event_type == "patch":
        for key, value in (data or {}).items():
            current = set_in(current, parts + split_path(key), value)
        return current
    return set_in(current, parts, data)


# ------------------ PUSH IDS ------------------

class PushIdGenerator:
    """
    20-character keys that sort in creation order: 8 characters of
    millisecond timestamp followed by 12 random characters. Keys made
    within the same millisecond increment the random part.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._last_ms = 0
        self._last_random = [0] * 12

    def __call__(self) -> str:
        with self._lock:
            now = int(time.time() * 1000)
            duplicate = now == self._last_ms
            self._last_ms = now

            stamp = []
            for _ in range(8):
                stamp.append(PUSH_CHARS[now % 64])
                now //= 64
            stamp.reverse()

            if not duplicate:
                self._last_random = [random.randrange(64) for _ in range(12)]
            else:
                i = 11
                while i >= 0 and self._last_random[i] == 63:
                    self._last_random[i] = 0
                    i -= 1
                if i >= 0:
                    self._last_random[i] += 1

            return "".join(stamp) + "".join(PUSH_CHARS[n] for n in self._last_random)


generate_push_id = PushIdGenerator()


# ------------------ SUBSCRIPTIONS ------------------

class Subscription:
    """
    Handle returned by DocumentStore.subscribe.

    cancel() may be called any number of times from any thread. Once it
    returns, on_change is not invoked again: delivery and cancellation
    share a lock, so a cancel racing a delivery waits for it to finish.
    """

    def __init__(self, path: str, on_change: Callable[[Any], None],
                 on_cancel: Optional[Callable[[], None]] = None):
        self.path = path
        self.on_cancel = on_cancel
        self._on_change = on_change
        self._lock = threading.RLock()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def deliver(self, value) -> bool:
        with self._lock:
            if not self._active:
                return False
            try:
                self._on_change(value)
            except Exception:
                logger.exception("Subscriber callback failed for %s", self.path or "/")
            return True

    def cancel(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        logger.debug("Subscription on %s cancelled", self.path or "/")
        if self.on_cancel:
            self.on_cancel()

    def __call__(self) -> None:
        self.cancel()


# ------------------ STORE CONTRACT ------------------

class DocumentStore(ABC):

    @abstractmethod
    def get(self, path: str):
        """Value at path, or None when nothing is stored there."""

    @abstractmethod
    def set(self, path: str, value) -> None:
        """Replace the value at path; None removes it."""

    @abstractmethod
    def push(self, path: str, value) -> str:
        """Store value under a freshly generated child key and return the key."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove the value at path."""

    @abstractmethod
    def subscribe(self, path: str, on_change: Callable[[Any], None]) -> Subscription:
        """
        Call on_change with the full value at path now and after every
        change under it, until the returned Subscription is cancelled.
        """

    def exists(self, path: str) -> bool:
        return self.get(path) is not None


class MemoryStore(DocumentStore):
    """
    In-process store with the same semantics as the hosted database.

    Writes and their notifications are serialised by a delivery lock, so
    subscribers see changes in the order they were applied.
    """

    def __init__(self, data: Optional[dict] = None):
        self._data = _clean(data or {})
        self._lock = threading.RLock()
        self._delivery_lock = threading.RLock()
        self._subscriptions: list[Subscription] = []

    def get(self, path: str):
        with self._lock:
            return copy.deepcopy(get_in(self._data, split_path(path)))

    def set(self, path: str, value) -> None:
        parts = split_path(path)
        with self._delivery_lock:
            with self._lock:
                self._data = set_in(self._data, parts, value)
                pending = self._collect(parts)
            self._dispatch(pending)

    def push(self, path: str, value) -> str:
        key = generate_push_id()
        self.set(join_path(path, key), value)
        return key

    def delete(self, path: str) -> None:
        self.set(path, None)

    def subscribe(self, path: str, on_change: Callable[[Any], None]) -> Subscription:
        subscription = Subscription(join_path(path), on_change)
        subscription.on_cancel = lambda: self._forget(subscription)
        with self._delivery_lock:
            with self._lock:
                self._subscriptions.append(subscription)
                initial = copy.deepcopy(get_in(self._data, split_path(path)))
            logger.debug("Subscribed to %s", subscription.path or "/")
            subscription.deliver(initial)
        return subscription

    def _forget(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _collect(self, changed: list[str]) -> list[tuple]:
        pending = []
        for subscription in self._subscriptions:
            watched = split_path(subscription.path)
            shared = min(len(watched), len(changed))
            if watched[:shared] == changed[:shared]:
                value = copy.deepcopy(get_in(self._data, watched))
                pending.append((subscription, value))
        return pending

    @staticmethod
    def _dispatch(pending: list[tuple]) -> None:
        for subscription, value in pending:
            subscription.deliver(value)


class FirebaseStore(DocumentStore):
    """Firebase Realtime Database backend built on firebase_admin.db."""

    def __init__(self, app=None):
        self._app = app

    def _ref(self, path: str):
        return db.reference("/" + join_path(path), app=self._app)

    def get(self, path: str):
        try:
            return self._ref(path).get()
        except FirebaseError as e:
            raise StoreError(f"Failed to read {path}: {e}") from e

    def set(self, path: str, value) -> None:
        if value is None:
            self.delete(path)
            return
        try:
            self._ref(path).set(value)
        except FirebaseError as e:
            raise StoreError(f"Failed to write {path}: {e}") from e

    def push(self, path: str, value) -> str:
        try:
            return self._ref(path).push(value).key
        except FirebaseError as e:
            raise StoreError(f"Failed to append to {path}: {e}") from e

    def delete(self, path: str) -> None:
        try:
            self._ref(path).delete()
        except FirebaseError as e:
            raise StoreError(f"Failed to delete {path}: {e}") from e

    def subscribe(self, path: str, on_change: Callable[[Any], None]) -> Subscription:
        subscription = Subscription(join_path(path), on_change)
        mirror = {"value": None}

        def handle(event):
            mirror["value"] = apply_event(mirror["value"], event.event_type, event.path, event.data)
            subscription.deliver(copy.deepcopy(mirror["value"]))

        try:
            registration = self._ref(path).listen(handle)
        except FirebaseError as e:
            raise StoreError(f"Failed to subscribe to {path}: {e}") from e

        subscription.on_cancel = registration.close
        logger.debug("Listening on %s", subscription.path or "/")
        return subscription
