"""
Display helpers for the event planner: currency, dates, names, roles,
and the per-participant share breakdown shown next to balances.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from models import ROLE_PERMISSIONS
from splitter import coerce_amount, as_records, participant_ids, payer_id, split_members

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "INR": "₹", "JPY": "¥", "CAD": "CA$", "AUD": "A$"}

AVATAR_COLORS = [
    "#f87171", "#fb923c", "#fbbf24", "#a3e635",
    "#34d399", "#22d3ee", "#60a5fa", "#a78bfa",
    "#f472b6", "#fb7185", "#fdba74", "#fde047",
]


def _to_datetime(value) -> Optional[datetime]:
    """Accepts datetimes, epoch milliseconds and ISO strings."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def _now_like(dt: datetime) -> datetime:
    return datetime.now(dt.tzinfo) if dt.tzinfo else datetime.now()


# ------------------ NUMBERS ------------------

def format_currency(amount, currency: str = "USD") -> str:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        value = 0.0
    if value != value:  # NaN
        value = 0.0
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_percentage(value, decimals: int = 1) -> str:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return "0%"
    return f"{num * 100:.{decimals}f}%"


# ------------------ DATES ------------------

def format_date(value, fmt: str = "%b %d, %Y") -> str:
    dt = _to_datetime(value)
    if dt is None:
        return ""
    return dt.strftime(fmt).replace(" 0", " ")


def format_relative_time(value) -> str:
    dt = _to_datetime(value)
    if dt is None:
        return ""

    seconds = int((_now_like(dt) - dt).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if seconds < 60:
        return "just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    if days < 7:
        return f"{days} day{'s' if days != 1 else ''} ago"
    return format_date(dt)


def format_event_status(event: dict) -> str:
    metadata = (event or {}).get("metadata")
    if not metadata:
        return "Unknown"

    dt = _to_datetime(metadata.get("dates"))
    if dt is None:
        return "Scheduled"

    now = _now_like(dt)
    if dt > now:
        days_until = -((now - dt).days)
        if days_until <= 1:
            return "Tomorrow"
        if days_until <= 7:
            return f"In {days_until} days"
        return "Upcoming"

    days_since = (now - dt).days
    if days_since == 0:
        return "Today"
    if days_since == 1:
        return "Yesterday"
    if days_since <= 7:
        return f"{days_since} days ago"
    return "Past"


# ------------------ TEXT ------------------

def truncate_text(text, max_length: int = 100, suffix: str = "...") -> str:
    if not text or not isinstance(text, str):
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix


def capitalize(text) -> str:
    if not text or not isinstance(text, str):
        return ""
    return text[0].upper() + text[1:].lower()


def title_case(text) -> str:
    if not text or not isinstance(text, str):
        return ""
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split(" "))


def format_list(items, conjunction: str = "and") -> str:
    items = [str(i) for i in items or []]
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} {conjunction} {items[1]}"
    return f"{', '.join(items[:-1])}, {conjunction} {items[-1]}"


def format_phone_number(phone) -> str:
    if not phone:
        return ""
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    return phone


# ------------------ PEOPLE ------------------

def format_user_name(user) -> str:
    if not user:
        return "User"
    for key in ("display_name", "name"):
        if user.get(key):
            return user[key]
    if user.get("email"):
        return user["email"].split("@")[0]
    return "User"


def format_user_initials(user) -> str:
    parts = format_user_name(user).split()
    if not parts:
        return "U"
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[-1][0]).upper()


def format_role(role) -> str:
    if role in ROLE_PERMISSIONS:
        return role.capitalize()
    return capitalize(role)


def generate_avatar_color(user_id: str) -> str:
    """Stable colour per user id (32-bit string hash)."""
    h = 0
    for ch in user_id or "":
        h = (ord(ch) + ((h << 5) - h)) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 1 << 32
    return AVATAR_COLORS[abs(h) % len(AVATAR_COLORS)]


# ------------------ TRANSPARENCY ------------------

def explain_participant_share(member_id, expenses, participants) -> dict:
    """
    Itemised view of how one participant's balance is made up.

    Uses the same payer and split rules as compute_balances, so
    total_paid - total_share equals that participant's balance.
    """
    members = participant_ids(participants)
    details = []
    total_paid = 0.0
    total_share = 0.0

    for expense in as_records(expenses):
        amount = coerce_amount(expense.get("amount"))
        if payer_id(expense) == member_id and member_id in members:
            total_paid += amount

        sharing = split_members(expense, members)
        # a repeated id is debited once per occurrence
        occurrences = sharing.count(member_id) if member_id in members else 0
        if occurrences:
            share = amount / len(sharing) * occurrences
            total_share += share
            details.append({
                "name": expense.get("name", ""),
                "category": expense.get("category", ""),
                "amount": amount,
                "split_count": len(sharing),
                "share": round(share, 2),
                "payer": expense.get("paid_by") or payer_id(expense),
            })

    return {
        "details": details,
        "total_paid": round(total_paid, 2),
        "total_share": round(total_share, 2),
        "net": round(total_paid - total_share, 2),
    }
