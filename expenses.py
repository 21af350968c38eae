"""
Expense ledger of one event: CRUD over events/{event_id}/expenses,
live subscriptions, and the settlement calculations on top of it.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from analytics import group_by_category, group_by_payer, summarize_expenses
from errors import PlannerError, StoreError, ValidationError
from event_records import EventRecordService, require_user
from models import DEFAULT_CATEGORY, SPLIT_ALL, now_ms
from settlement import compute_settlements
from splitter import coerce_amount, compute_balances, compute_total
from validation import validate_expense

logger = logging.getLogger(__name__)

VALID_CATEGORIES = ["accommodation", "food", "transport", "activities", "supplies", DEFAULT_CATEGORY]


def _expense_fields(data: dict) -> dict:
    """Editable fields of an expense, with defaults applied."""
    return {
        "name": data.get("name"),
        "description": data.get("description") or "",
        "amount": coerce_amount(data.get("amount")),
        "paid_by": data.get("paid_by") or "",
        "paid_by_user_id": data.get("paid_by_user_id") or "",
        "venmo_username": data.get("venmo_username") or "",
        "split_type": data.get("split_type") or SPLIT_ALL,
        "split_between": data.get("split_between") or SPLIT_ALL,
        "category": data.get("category") or DEFAULT_CATEGORY,
        "receipt_url": data.get("receipt_url") or "",
    }


def _check(data: dict) -> None:
    errors = validate_expense(data)
    if errors:
        raise ValidationError(errors)


class ExpenseService(EventRecordService):
    collection = "expenses"
    label = "expense"

    def create_expense(self, data: dict, user_id: str) -> dict:
        require_user(user_id)
        _check(data)

        now = now_ms()
        expense = {
            **_expense_fields(data),
            "date": data.get("date") or datetime.now(timezone.utc).isoformat(),
            "added_by": user_id,
            "created_at": now,
            "updated_at": now,
        }

        try:
            expense_id = self.store.push(self.path, expense)
        except StoreError as e:
            logger.error("Error creating expense: %s", e)
            raise StoreError(f"Failed to create expense: {e}") from e

        logger.info("Expense %s added to event %s by %s", expense_id, self.event_id, user_id)
        return {"id": expense_id, **expense}

    def update_expense(self, expense_id: str, data: dict, user_id: str) -> dict:
        """
        Replace an expense with the submitted fields merged over the
        stored record. Fields the form does not own (added_by,
        created_at, anything unknown) are kept; an omitted date keeps
        the stored one.
        """
        require_user(user_id)
        _check(data)

        try:
            existing = self._require_existing(expense_id)
            updated = {
                **existing,
                **_expense_fields(data),
                "date": data.get("date") or existing.get("date"),
                "updated_at": now_ms(),
            }
            self.store.set(self.record_path(expense_id), updated)
        except StoreError as e:
            logger.error("Error updating expense: %s", e)
            raise StoreError(f"Failed to update expense: {e}") from e

        logger.info("Expense %s updated by %s", expense_id, user_id)
        return {"id": expense_id, **updated}

    def delete_expense(self, expense_id: str, user_id: str) -> dict:
        require_user(user_id)
        try:
            self.store.delete(self.record_path(expense_id))
        except StoreError as e:
            logger.error("Error deleting expense: %s", e)
            raise StoreError(f"Failed to delete expense: {e}") from e

        logger.info("Expense %s deleted by %s", expense_id, user_id)
        return {"success": True}

    def get_expense(self, expense_id: str):
        try:
            return self._get_one(expense_id)
        except PlannerError as e:
            logger.error("Error getting expense: %s", e)
            raise

    def get_expenses(self) -> dict:
        try:
            return self._get_all()
        except PlannerError as e:
            logger.error("Error getting expenses: %s", e)
            raise

    def subscribe_expenses(self, callback):
        """callback receives {expense_id: expense} on every change."""
        return self._subscribe(callback)

    # ------------------ CALCULATIONS ------------------

    @staticmethod
    def calculate_total_expenses(expenses) -> float:
        return compute_total(expenses)

    @staticmethod
    def calculate_balances(expenses, event_members) -> dict:
        return compute_balances(expenses, event_members)

    @staticmethod
    def calculate_settlements(balances) -> list[dict]:
        return compute_settlements(balances)

    @staticmethod
    def get_expenses_by_category(expenses) -> dict:
        return group_by_category(expenses)

    @staticmethod
    def get_expenses_by_payer(expenses) -> dict:
        return group_by_payer(expenses)

    def get_summary(self, event_members) -> dict:
        return summarize_expenses(self.get_expenses(), event_members)


def create_expense_service(store, event_id) -> ExpenseService:
    return ExpenseService(store, event_id)
