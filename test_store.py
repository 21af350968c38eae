import threading

import pytest

import store as store_module
from errors import StoreError
from store import FirebaseStore, MemoryStore, apply_event, generate_push_id, join_path, split_path


def test_paths():
    assert split_path("/events//e1/expenses/") == ["events", "e1", "expenses"]
    assert join_path("events", "e1/meals", "", "m1") == "events/e1/meals/m1"


def test_set_get_delete():
    store = MemoryStore()

    store.set("events/e1/metadata", {"name": "Trip", "location": None})
    assert store.get("events/e1/metadata") == {"name": "Trip"}
    assert store.get("events/e1/metadata/name") == "Trip"
    assert store.get("events/missing") is None

    store.delete("events/e1/metadata/name")
    assert store.get("events") is None


def test_setting_none_or_empty_removes_value():
    store = MemoryStore({"a": {"b": 1, "c": 2}})

    store.set("a/b", None)
    store.set("a/c", {})

    assert store.get("a") is None
    assert store.get("") is None


def test_get_returns_copies():
    store = MemoryStore()
    store.set("a", {"list": [1, 2]})

    value = store.get("a")
    value["list"].append(3)

    assert store.get("a") == {"list": [1, 2]}


def test_push_generates_ordered_unique_keys():
    store = MemoryStore()

    keys = [store.push("items", {"n": i}) for i in range(50)]

    assert len(set(keys)) == 50
    assert all(len(k) == 20 for k in keys)
    assert sorted(keys) == keys
    assert store.get(join_path("items", keys[7])) == {"n": 7}


def test_push_ids_are_unique_across_threads():
    ids = []
    lock = threading.Lock()

    def worker():
        made = [generate_push_id() for _ in range(200)]
        with lock:
            ids.extend(made)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(set(ids)) == 800


def test_subscribe_delivers_current_value_then_changes():
    store = MemoryStore({"events": {"e1": {"expenses": {"x": {"amount": 5}}}}})
    seen = []

    store.subscribe("events/e1/expenses", seen.append)
    store.set("events/e1/expenses/y", {"amount": 7})
    store.delete("events/e1/expenses/x")

    assert seen == [
        {"x": {"amount": 5}},
        {"x": {"amount": 5}, "y": {"amount": 7}},
        {"y": {"amount": 7}},
    ]


def test_subscribers_see_parent_writes_but_not_siblings():
    store = MemoryStore()
    seen = []
    store.subscribe("events/e1/meals", seen.append)

    store.set("events/e2/meals/m", {"name": "Pizza"})
    store.set("events/e1", {"meals": {"m": {"name": "Tacos"}}})
    store.delete("events")

    assert seen == [None, {"m": {"name": "Tacos"}}, None]


def test_cancel_is_idempotent_and_stops_delivery():
    store = MemoryStore()
    seen = []

    subscription = store.subscribe("a", seen.append)
    subscription.cancel()
    subscription.cancel()
    store.set("a", 1)

    assert seen == [None]
    assert not subscription.active


def test_subscriptions_on_same_path_are_independent():
    store = MemoryStore()
    first, second = [], []

    sub1 = store.subscribe("a", first.append)
    store.subscribe("a", second.append)
    sub1.cancel()
    store.set("a", "x")

    assert first == [None]
    assert second == [None, "x"]


def test_cancel_from_inside_callback():
    store = MemoryStore()
    seen = []
    holder = {}

    def on_change(value):
        seen.append(value)
        if value == 1:
            holder["sub"].cancel()

    holder["sub"] = store.subscribe("a", on_change)
    store.set("a", 1)
    store.set("a", 2)

    assert seen == [None, 1]


def test_failing_subscriber_does_not_break_writes():
    store = MemoryStore()
    seen = []

    def broken(value):
        raise RuntimeError("boom")

    store.subscribe("a", broken)
    store.subscribe("a", seen.append)
    store.set("a", 3)

    assert store.get("a") == 3
    assert seen == [None, 3]


def test_apply_event_put_and_patch():
    value = apply_event(None, "put", "/", {"x": {"amount": 1}})
    value = apply_event(value, "put", "/y", {"amount": 2})
    value = apply_event(value, "patch", "/x", {"amount": 3, "name": "Gas"})
    value = apply_event(value, "put", "/y", None)

    assert value == {"x": {"amount": 3, "name": "Gas"}}
    assert apply_event(value, "put", "/", None) is None


class FakeEvent:
    def __init__(self, event_type, path, data):
        self.event_type = event_type
        self.path = path
        self.data = data


class FakeRegistration:
    def __init__(self):
        self.closed = 0

    def close(self):
        self.closed += 1


class FakeReference:
    def __init__(self, path, data):
        self.path = path
        self.data = data
        self.listener = None
        self.registration = FakeRegistration()

    def get(self):
        return self.data

    def listen(self, callback):
        self.listener = callback
        return self.registration


def test_firebase_store_delivers_full_subtree(monkeypatch):
    refs = {}

    def reference(path, app=None):
        refs.setdefault(path, FakeReference(path, None))
        return refs[path]

    monkeypatch.setattr(store_module.db, "reference", reference)
    seen = []

    subscription = FirebaseStore().subscribe("events/e1/expenses", seen.append)
    ref = refs["/events/e1/expenses"]
    ref.listener(FakeEvent("put", "/", {"x": {"amount": 5}}))
    ref.listener(FakeEvent("patch", "/x", {"amount": 6}))
    subscription.cancel()
    subscription.cancel()
    ref.listener(FakeEvent("put", "/y", {"amount": 1}))

    assert seen == [{"x": {"amount": 5}}, {"x": {"amount": 6}}]
    assert ref.registration.closed == 1


def test_firebase_errors_become_store_errors(monkeypatch):
    from firebase_admin.exceptions import UnavailableError

    class BrokenReference:
        def get(self):
            raise UnavailableError("database offline")

    monkeypatch.setattr(store_module.db, "reference", lambda path, app=None: BrokenReference())

    with pytest.raises(StoreError, match="database offline"):
        FirebaseStore().get("events")


def test_concurrent_writers_leave_subscribers_on_latest_value():
    store = MemoryStore()
    seen = []
    store.subscribe("counter", seen.append)

    def writer(offset):
        for i in range(200):
            store.set("counter", offset + i)

    threads = [threading.Thread(target=writer, args=(n * 1000,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(seen) == 801
    assert seen[-1] == store.get("counter")
