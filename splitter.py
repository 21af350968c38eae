"""
Splitter Module

Turns an event's expense ledger into per-participant balances.

Features:
    - Total of all expenses
    - Equal split among every participant ("all") or an explicit list
    - Signed balances: positive = is owed money, negative = owes money

Data Model:
    Input - expenses (mapping of expense_id -> record, or any iterable of records):
        - amount: number or numeric string (anything else counts as 0)
        - paid_by_user_id: participant id of the payer (preferred)
        - paid_by: payer display name, used as the id when no user id is set
        - split_type: 'all' or 'select'
        - split_between: 'all' or list of participant ids

    Input - participants: any mapping keyed by participant id, or an
    iterable of ids. Values are ignored.

    Output - dict of participant_id -> float balance

Nothing here raises: records are not schema-enforced, so bad data is
read permissively and simply contributes nothing.
"""
from __future__ import annotations

import math
from collections.abc import Hashable, Mapping

from models import SPLIT_ALL


def coerce_amount(value) -> float:
    """
    Read an expense amount as a non-negative float.

    Numbers and numeric strings are accepted; missing, unparsable,
    non-finite and negative values become 0.
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def as_records(expenses) -> list:
    """Records from a {id: record} mapping or an iterable, skipping non-records."""
    if not expenses:
        return []
    values = expenses.values() if isinstance(expenses, Mapping) else expenses
    return [e for e in values if isinstance(e, Mapping)]


def participant_ids(participants) -> list:
    if not participants:
        return []
    return list(participants)


def payer_id(expense: Mapping):
    return expense.get("paid_by_user_id") or expense.get("paid_by")


def split_members(expense: Mapping, participants: list) -> list:
    """
    Participant ids sharing an expense.

    'all' in either split_type or split_between means everyone currently
    in the event; otherwise split_between must be an explicit list.
    Ids in the list are returned even when they are not participants.
    """
    split_between = expense.get("split_between")
    if expense.get("split_type") == SPLIT_ALL or split_between == SPLIT_ALL:
        return list(participants)
    if isinstance(split_between, (list, tuple)):
        return list(split_between)
    return []


def _known(balances: dict, member_id) -> bool:
    return isinstance(member_id, Hashable) and member_id in balances


def compute_total(expenses) -> float:
    return sum((coerce_amount(e.get("amount")) for e in as_records(expenses)), 0.0)


def compute_balances(expenses, participants) -> dict:
    """
    Net balance of every participant across all expenses.

    For each expense the payer (when a known participant) is credited
    the full amount and each split member present in the event is
    debited amount / len(split members). Unknown ids in an explicit
    split list still count toward the divisor but are not debited.

    A payer missing from participants loses the credit while the split
    members are still debited, so balances then no longer sum to zero.
    Callers must tolerate that.
    """
    members = participant_ids(participants)
    balances = {member_id: 0.0 for member_id in members}

    for expense in as_records(expenses):
        amount = coerce_amount(expense.get("amount"))

        payer = payer_id(expense)
        if payer and _known(balances, payer):
            balances[payer] += amount

        sharing = split_members(expense, members)
        if sharing:
            share = amount / len(sharing)
            for member_id in sharing:
                if _known(balances, member_id):
                    balances[member_id] -= share

    return balances
