import pytest

from app import create_app
from config.settings import Settings
from errors import AuthenticationError
from expenses import ExpenseService
from models import User
from participants import MemberService
from store import MemoryStore

USERS = {
    "alice-token": User(uid="alice", email="alice@example.com", display_name="Alice"),
    "bob-token": User(uid="bob", email="bob@example.com", display_name="Bob"),
    "carol-token": User(uid="carol", email="carol@example.com", display_name="Carol"),
}


class FakeIdentity:
    def verify(self, token):
        if token not in USERS:
            raise AuthenticationError("Invalid or expired credentials")
        return USERS[token]


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def client(store):
    app = create_app(Settings(store_backend="memory"), store=store, identity=FakeIdentity())
    app.config["TESTING"] = True
    return app.test_client()


def auth(token="alice-token"):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def event_id(client):
    response = client.post("/events", json={"name": "Lake Trip", "dates": "2026-07-01", "type": "vacation"},
                           headers=auth())
    assert response.status_code == 201
    return response.get_json()["event_id"]


def test_public_routes(client):
    assert client.get("/health").get_json() == {"status": "ok"}
    templates = client.get("/templates").get_json()
    assert len(templates["templates"]) == 7
    assert "food" in templates["categories"]


def test_authentication_required(client):
    assert client.get("/events").status_code == 401
    assert client.get("/events", headers={"Authorization": "Basic abc"}).status_code == 401
    response = client.get("/events", headers=auth("forged"))
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid or expired credentials"}


def test_create_and_list_events(client, event_id):
    listed = client.get("/events", headers=auth()).get_json()
    assert [e["id"] for e in listed] == [event_id]

    event = client.get(f"/events/{event_id}", headers=auth()).get_json()
    assert event["metadata"]["name"] == "Lake Trip"


def test_invalid_event_reports_all_errors(client):
    response = client.post("/events", json={"name": "x"}, headers=auth())

    assert response.status_code == 400
    assert "Event dates are required" in response.get_json()["errors"]


def test_non_members_are_denied(client, event_id):
    assert client.get(f"/events/{event_id}", headers=auth("bob-token")).status_code == 403
    assert client.get(f"/events/{event_id}/expenses", headers=auth("bob-token")).status_code == 403
    response = client.post(f"/events/{event_id}/expenses", json={"name": "Gas", "amount": 5},
                           headers=auth("bob-token"))
    assert response.status_code == 403


def test_missing_event(client):
    assert client.get("/events/nope", headers=auth()).status_code == 403


def test_expense_flow_and_summary(client, store, event_id):
    MemberService(store, event_id).add_member("bob", "Bob", "bob@example.com")

    created = client.post(f"/events/{event_id}/expenses",
                          json={"name": "Cabin", "amount": 300, "paid_by": "Alice", "paid_by_user_id": "alice"},
                          headers=auth())
    assert created.status_code == 201
    expense_id = created.get_json()["id"]

    client.post(f"/events/{event_id}/expenses",
                json={"name": "Groceries", "amount": 60, "paid_by": "Bob", "paid_by_user_id": "bob",
                      "split_type": "select", "split_between": ["bob"]},
                headers=auth("bob-token"))

    summary = client.get(f"/events/{event_id}/expenses/summary", headers=auth()).get_json()
    expected = ExpenseService(store, event_id).get_summary(MemberService(store, event_id).get_members())
    assert summary["total"] == 360
    assert summary["balances"] == expected["balances"] == {"alice": 150.0, "bob": -150.0}
    assert summary["settlements"] == [{"from": "bob", "to": "alice", "amount": 150.0}]

    updated = client.put(f"/events/{event_id}/expenses/{expense_id}",
                         json={"name": "Cabin", "amount": 320, "paid_by": "Alice", "paid_by_user_id": "alice"},
                         headers=auth())
    assert updated.get_json()["amount"] == 320

    assert client.delete(f"/events/{event_id}/expenses/{expense_id}", headers=auth()).status_code == 204
    assert client.get(f"/events/{event_id}/expenses/{expense_id}", headers=auth()).status_code == 404


def test_viewer_cannot_write(client, store, event_id):
    MemberService(store, event_id).add_member("bob", "Bob", "bob@example.com", role="viewer")

    assert client.get(f"/events/{event_id}/expenses", headers=auth("bob-token")).status_code == 200
    response = client.post(f"/events/{event_id}/meals",
                           json={"name": "Tacos", "slot": "dinner", "day": "day-1"},
                           headers=auth("bob-token"))
    assert response.status_code == 403


def test_invitation_flow(client, event_id):
    response = client.post(f"/events/{event_id}/invitations", json={"email": "bob@example.com"},
                           headers=auth())
    assert response.status_code == 201
    invitation_id = response.get_json()["id"]

    pending = client.get("/invitations", headers=auth("bob-token")).get_json()
    assert [inv["event_name"] for inv in pending] == ["Lake Trip"]

    wrong_user = client.post(f"/events/{event_id}/invitations/{invitation_id}/accept",
                             headers=auth("carol-token"))
    assert wrong_user.status_code == 409

    accepted = client.post(f"/events/{event_id}/invitations/{invitation_id}/accept", headers=auth("bob-token"))
    assert accepted.status_code == 200
    assert accepted.get_json()["role"] == "member"

    members = client.get(f"/events/{event_id}/members", headers=auth("bob-token")).get_json()
    assert set(members) == {"alice", "bob"}
    assert client.get("/invitations", headers=auth("bob-token")).get_json() == []


def test_decline_by_someone_else_needs_invite_permission(client, event_id):
    invitation_id = client.post(f"/events/{event_id}/invitations", json={"email": "bob@example.com"},
                                headers=auth()).get_json()["id"]

    assert client.post(f"/events/{event_id}/invitations/{invitation_id}/decline",
                       headers=auth("carol-token")).status_code == 403
    assert client.post(f"/events/{event_id}/invitations/{invitation_id}/decline",
                       headers=auth("bob-token")).status_code == 204


def test_members_routes(client, event_id):
    guest = client.post(f"/events/{event_id}/members", json={"name": "Grandpa"}, headers=auth()).get_json()

    promoted = client.patch(f"/events/{event_id}/members/{guest['id']}", json={"role": "viewer"},
                            headers=auth())
    assert promoted.get_json()["permissions"] == ["read"]

    assert client.delete(f"/events/{event_id}/members/alice", headers=auth()).status_code == 403
    assert client.delete(f"/events/{event_id}/members/{guest['id']}", headers=auth()).status_code == 204


def test_meals_and_itinerary(client, event_id):
    meal = client.post(f"/events/{event_id}/meals",
                       json={"name": "Tacos", "slot": "dinner", "day": "day-1", "cost": 30},
                       headers=auth()).get_json()
    assert client.get(f"/events/{event_id}/meals", headers=auth()).get_json()[meal["id"]]["name"] == "Tacos"

    assert client.put(f"/events/{event_id}/itinerary/friday-plan", json={"value": "Drive up"},
                      headers=auth()).status_code == 204
    assert client.get(f"/events/{event_id}/itinerary", headers=auth()).get_json()["friday-plan"] == "Drive up"


def test_profile_routes(client):
    assert client.get("/me", headers=auth()).status_code == 404

    profile = client.post("/me", headers=auth()).get_json()
    assert profile["name"] == "Alice"

    prefs = client.put("/me/preferences", json={"theme": "dark"}, headers=auth()).get_json()
    assert prefs["theme"] == "dark"
    assert client.get("/me", headers=auth()).get_json()["preferences"]["theme"] == "dark"


def test_update_and_delete_event(client, event_id):
    updated = client.patch(f"/events/{event_id}", json={"location": "Tahoe"}, headers=auth())
    assert updated.get_json()["location"] == "Tahoe"

    assert client.delete(f"/events/{event_id}", headers=auth("bob-token")).status_code == 403
    assert client.delete(f"/events/{event_id}", headers=auth()).status_code == 204
    assert client.get("/events", headers=auth()).get_json() == []


def test_report_download(client, event_id):
    client.post(f"/events/{event_id}/expenses", json={"name": "Gas", "amount": 40}, headers=auth())

    response = client.get(f"/events/{event_id}/report.pdf", headers=auth())

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/pdf"
    assert "Lake_Trip_report.pdf" in response.headers["Content-Disposition"]
    assert response.data.startswith(b"%PDF")


def test_non_object_body_is_rejected(client, event_id):
    response = client.post(f"/events/{event_id}/expenses", json=["not", "an", "object"], headers=auth())

    assert response.status_code == 400


def test_memory_backend_needs_an_identity_provider():
    with pytest.raises(RuntimeError, match="identity provider"):
        create_app(Settings(store_backend="memory"))

    app = create_app(Settings(store_backend="memory"), identity=FakeIdentity())
    assert app.test_client().get("/events", headers=auth()).get_json() == []
