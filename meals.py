"""
Meal plan of one event: CRUD over events/{event_id}/meals plus the
groupings the meal board uses.
"""
from __future__ import annotations

import logging

from errors import PlannerError, StoreError, ValidationError
from event_records import EventRecordService, require_user
from models import now_ms
from splitter import coerce_amount, as_records
from validation import validate_meal

logger = logging.getLogger(__name__)


def _meal_fields(data: dict) -> dict:
    servings = data.get("servings") or 1
    try:
        servings = max(1, int(servings))
    except (TypeError, ValueError):
        servings = 1
    return {
        "name": data.get("name"),
        "description": data.get("description") or "",
        "recipe_link": data.get("recipe_link") or "",
        "claimed_by": data.get("claimed_by") or "",
        "slot": data.get("slot"),
        "day": data.get("day"),
        "time": data.get("time") or "",
        "location": data.get("location") or "",
        "cost": coerce_amount(data.get("cost")),
        "servings": servings,
        "assigned_to": data.get("assigned_to") or "",
    }


def _check(data: dict) -> None:
    errors = validate_meal(data)
    if errors:
        raise ValidationError(errors)


class MealService(EventRecordService):
    collection = "meals"
    label = "meal"

    def create_meal(self, data: dict, user_id: str) -> dict:
        require_user(user_id)
        _check(data)

        now = now_ms()
        meal = {**_meal_fields(data), "added_by": user_id, "created_at": now, "updated_at": now}
        try:
            meal_id = self.store.push(self.path, meal)
        except StoreError as e:
            logger.error("Error creating meal: %s", e)
            raise StoreError(f"Failed to create meal: {e}") from e

        logger.info("Meal %s added to event %s", meal_id, self.event_id)
        return {"id": meal_id, **meal}

    def update_meal(self, meal_id: str, data: dict, user_id: str) -> dict:
        require_user(user_id)
        _check(data)

        try:
            existing = self._require_existing(meal_id)
            updated = {**existing, **_meal_fields(data), "updated_at": now_ms()}
            self.store.set(self.record_path(meal_id), updated)
        except StoreError as e:
            logger.error("Error updating meal: %s", e)
            raise StoreError(f"Failed to update meal: {e}") from e

        logger.info("Meal %s updated by %s", meal_id, user_id)
        return {"id": meal_id, **updated}

    def claim_meal(self, meal_id: str, user_id: str, name: str) -> dict:
        """Mark a meal as claimed by name, replacing the whole record."""
        require_user(user_id)
        existing = self._require_existing(meal_id)
        return self.update_meal(meal_id, {**existing, "claimed_by": name}, user_id)

    def delete_meal(self, meal_id: str, user_id: str) -> dict:
        require_user(user_id)
        try:
            self.store.delete(self.record_path(meal_id))
        except StoreError as e:
            logger.error("Error deleting meal: %s", e)
            raise StoreError(f"Failed to delete meal: {e}") from e
        return {"success": True}

    def get_meal(self, meal_id: str):
        try:
            return self._get_one(meal_id)
        except PlannerError as e:
            logger.error("Error getting meal: %s", e)
            raise

    def get_meals(self) -> dict:
        try:
            return self._get_all()
        except PlannerError as e:
            logger.error("Error getting meals: %s", e)
            raise

    def subscribe_meals(self, callback):
        return self._subscribe(callback)

    # ------------------ ORGANISATION ------------------

    @staticmethod
    def organize_meals_by_day(meals) -> dict:
        """day -> slot -> [meals]"""
        organized = {}
        for meal in as_records(meals):
            organized.setdefault(meal.get("day"), {}).setdefault(meal.get("slot"), []).append(meal)
        return organized

    @staticmethod
    def calculate_total_cost(meals) -> float:
        return sum((coerce_amount(m.get("cost")) for m in as_records(meals)), 0.0)

    @staticmethod
    def get_meals_by_claimer(meals) -> dict:
        by_claimer = {}
        for meal in as_records(meals):
            if meal.get("claimed_by"):
                by_claimer.setdefault(meal["claimed_by"], []).append(meal)
        return by_claimer


def create_meal_service(store, event_id) -> MealService:
    return MealService(store, event_id)
