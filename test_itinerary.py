import pytest

from errors import ValidationError
from itinerary import MAX_FIELD_LENGTH, ItineraryService


def test_update_and_read_fields(store, event_id):
    itinerary = ItineraryService(store)

    itinerary.update_itinerary_field(event_id, "friday-plan", "Drive up <after> work")
    itinerary.update_itinerary_field(event_id, "notes", "Bring chairs")

    value = itinerary.get_itinerary(event_id)
    assert value["friday-plan"] == "Drive up <after> work"
    assert value["notes"] == "Bring chairs"


def test_field_rules(store, event_id):
    itinerary = ItineraryService(store)

    with pytest.raises(ValidationError):
        itinerary.update_itinerary_field(event_id, "days/1", "nested")
    with pytest.raises(ValidationError):
        itinerary.update_itinerary_field(event_id, "", "empty")
    with pytest.raises(ValidationError):
        itinerary.update_itinerary_field(event_id, "notes", "x" * (MAX_FIELD_LENGTH + 1))


def test_subscribe_to_itinerary(store, event_id):
    itinerary = ItineraryService(store)
    seen = []

    itinerary.subscribe_to_itinerary(event_id, seen.append)
    itinerary.update_itinerary_field(event_id, "saturday-plan", "Hike")
    itinerary.cleanup()
    itinerary.update_itinerary_field(event_id, "sunday-plan", "Brunch")

    assert len(seen) == 2
    assert seen[1]["saturday-plan"] == "Hike"
    assert "sunday-plan" not in seen[1]


def test_missing_itinerary_is_empty(store):
    assert ItineraryService(store).get_itinerary("missing") == {}
