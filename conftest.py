import pytest

from events import EventService
from models import User
from store import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def owner():
    return User(uid="alice", email="alice@example.com", display_name="Alice")


@pytest.fixture
def guest_user():
    return User(uid="bob", email="bob@example.com", display_name="Bob")


@pytest.fixture
def event_id(store, owner):
    """A vacation event owned by Alice."""
    result = EventService(store).create_event(
        {"name": "Lake Trip", "dates": "2026-07-01", "location": "Tahoe", "type": "vacation"},
        owner,
    )
    return result["event_id"]
