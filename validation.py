"""
Input validation for user-entered data, applied before anything is
written to the store. Validators return a list of messages; an empty
list means the input is valid.
"""
from __future__ import annotations

import html
import math
import re
from datetime import datetime
from urllib.parse import urlparse

from event_templates import EVENT_TYPES
from models import SPLIT_ALL, SPLIT_SELECT, VALID_ROLES

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PRIVACY_OPTIONS = ("public", "private", "invite-only")


def is_valid_email(email) -> bool:
    return isinstance(email, str) and bool(EMAIL_RE.match(email.strip()))


def is_valid_url(url) -> bool:
    if not isinstance(url, str):
        return False
    parsed = urlparse(url)
    return bool(parsed.scheme and (parsed.netloc or parsed.path))


def is_valid_date(value) -> bool:
    """ISO dates and datetimes, with or without a trailing Z."""
    if not isinstance(value, str) or not value.strip():
        return False
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def _is_amount(value) -> bool:
    if isinstance(value, bool):
        return False
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(amount) and amount >= 0


def validate_event(data: dict) -> list[str]:
    errors = []
    name = data.get("name")

    if not isinstance(name, str) or len(name.strip()) < 2:
        errors.append("Event name must be at least 2 characters long")
    elif len(name) > 100:
        errors.append("Event name cannot exceed 100 characters")

    dates = data.get("dates")
    if not isinstance(dates, str) or not dates.strip():
        errors.append("Event dates are required")

    if len(data.get("description") or "") > 500:
        errors.append("Event description cannot exceed 500 characters")

    if len(data.get("location") or "") > 200:
        errors.append("Event location cannot exceed 200 characters")

    privacy = data.get("privacy")
    if privacy and privacy not in PRIVACY_OPTIONS:
        errors.append("Privacy setting must be public, private, or invite-only")

    event_type = data.get("type")
    if event_type and event_type not in EVENT_TYPES:
        errors.append("Event type is not valid")

    return errors


def validate_expense(data: dict) -> list[str]:
    errors = []
    name = data.get("name")

    if not isinstance(name, str) or not name.strip():
        errors.append("Expense name is required")
    elif len(name) > 100:
        errors.append("Expense name cannot exceed 100 characters")

    if not _is_amount(data.get("amount")):
        errors.append("Amount must be a non-negative number")

    if data.get("date") and not is_valid_date(data["date"]):
        errors.append("Expense date is not a valid date")

    split_type = data.get("split_type")
    if split_type and split_type not in (SPLIT_ALL, SPLIT_SELECT):
        errors.append("Split type must be 'all' or 'select'")

    split_between = data.get("split_between", SPLIT_ALL)
    if split_between != SPLIT_ALL:
        if not isinstance(split_between, list) or not split_between:
            errors.append("Split must be 'all' or a non-empty list of members")

    if len(data.get("description") or "") > 500:
        errors.append("Expense description cannot exceed 500 characters")

    return errors


def validate_meal(data: dict) -> list[str]:
    errors = []
    name = data.get("name")

    if not isinstance(name, str) or not name.strip():
        errors.append("Meal name is required")
    elif len(name) > 100:
        errors.append("Meal name cannot exceed 100 characters")

    if not data.get("slot"):
        errors.append("Meal slot is required")
    if not data.get("day"):
        errors.append("Meal day is required")

    if "cost" in data and data["cost"] not in (None, "") and not _is_amount(data["cost"]):
        errors.append("Meal cost must be a non-negative number")

    if data.get("recipe_link") and not is_valid_url(data["recipe_link"]):
        errors.append("Recipe link must be a valid URL")

    return errors


def validate_role(role) -> list[str]:
    if role not in VALID_ROLES:
        return [f"Role must be one of: {', '.join(VALID_ROLES)}"]
    return []


def sanitize_html(text) -> str:
    if not isinstance(text, str):
        return ""
    return html.escape(text, quote=True).replace("/", "&#x2F;")


def sanitize_input(text, max_length: int = 1000) -> str:
    if not isinstance(text, str):
        return ""
    return sanitize_html(text.strip())[:max_length]
