import pytest

from errors import ValidationError
from meals import MealService, create_meal_service


@pytest.fixture
def meals(store, event_id):
    return create_meal_service(store, event_id)


def test_create_and_organize(meals):
    meals.create_meal({"name": "Pancakes", "slot": "breakfast", "day": "day-1", "cost": 12}, "alice")
    meals.create_meal({"name": "Tacos", "slot": "dinner", "day": "day-1", "cost": "30.5",
                       "claimed_by": "Bob"}, "alice")
    meals.create_meal({"name": "Chili", "slot": "dinner", "day": "day-2", "claimed_by": "Bob"}, "alice")

    all_meals = meals.get_meals()
    organized = MealService.organize_meals_by_day(all_meals)

    assert set(organized) == {"day-1", "day-2"}
    assert [m["name"] for m in organized["day-1"]["dinner"]] == ["Tacos"]
    assert MealService.calculate_total_cost(all_meals) == pytest.approx(42.5)
    assert [m["name"] for m in MealService.get_meals_by_claimer(all_meals)["Bob"]] == ["Tacos", "Chili"]


def test_meal_defaults(meals):
    meal = meals.create_meal({"name": "Snacks", "slot": "lunch", "day": "day-1", "servings": "x"}, "alice")

    assert meal["servings"] == 1
    assert meal["cost"] == 0
    assert meal["claimed_by"] == ""


def test_meal_validation(meals):
    with pytest.raises(ValidationError) as excinfo:
        meals.create_meal({"name": "Soup", "recipe_link": "not a url"}, "alice")

    assert "Meal slot is required" in excinfo.value.errors
    assert "Recipe link must be a valid URL" in excinfo.value.errors


def test_claim_meal_keeps_other_fields(meals):
    meal = meals.create_meal({"name": "BBQ", "slot": "dinner", "day": "day-2", "cost": 80}, "alice")

    claimed = meals.claim_meal(meal["id"], "bob", "Bob")

    assert claimed["claimed_by"] == "Bob"
    assert claimed["cost"] == 80
    assert claimed["added_by"] == "alice"


def test_update_and_delete(meals):
    meal = meals.create_meal({"name": "BBQ", "slot": "dinner", "day": "day-2"}, "alice")

    updated = meals.update_meal(meal["id"], {"name": "Veggie BBQ", "slot": "dinner", "day": "day-3"}, "bob")
    assert updated["day"] == "day-3"
    assert updated["created_at"] == meal["created_at"]

    meals.delete_meal(meal["id"], "bob")
    assert meals.get_meal(meal["id"]) is None
