"""
Settlement Module

Converts net balances into concrete payment instructions.

Features:
    - Greedy largest-first matching of debtors to creditors
    - Balances within the rounding tolerance count as settled
    - Deterministic output for identical input

Data Model:
    Input - balances: dict of participant_id -> signed float
        (positive = is owed money, negative = owes money)

    Output - ordered list of transfers:
        - from: participant_id of the debtor who pays
        - to: participant_id of the creditor who receives
        - amount: float

Functions:
    compute_settlements: Convert balances into settlement transfers.
"""
from __future__ import annotations

TOLERANCE = 0.01


def compute_settlements(balances: dict) -> list[dict]:
    """
    Convert net balances into settlement transfers.

    Uses a greedy algorithm:
        1. Split participants into creditors (balance > 0.01) and
           debtors (balance < -0.01), keeping magnitudes
        2. Sort both sides by largest magnitude first
        3. Walk both lists together, settling min(credit, debt) each step
           and moving past whichever side drops below the tolerance

    This is a fast approximation of a minimum-transfer settlement, not
    a guaranteed optimum. It never takes more than
    len(creditors) + len(debtors) - 1 steps.

    Args:
        balances: participant_id -> signed balance.

    Returns:
        list[dict]: transfers with keys from, to, amount.

    Notes:
        - Does NOT modify input balances
        - Sorting is stable, so equal magnitudes keep balance order
    """
    creditors = []
    debtors = []
    for member_id, balance in (balances or {}).items():
        if balance > TOLERANCE:
            creditors.append([member_id, balance])
        elif balance < -TOLERANCE:
            debtors.append([member_id, -balance])

    creditors.sort(key=lambda c: c[1], reverse=True)
    debtors.sort(key=lambda d: d[1], reverse=True)

    settlements = []
    i = j = 0
    while i < len(creditors) and j < len(debtors):
        creditor = creditors[i]
        debtor = debtors[j]

        settle = min(creditor[1], debtor[1])
        if settle > TOLERANCE:
            settlements.append({
                "from": debtor[0],
                "to": creditor[0],
                "amount": settle,
            })

        creditor[1] -= settle
        debtor[1] -= settle

        if creditor[1] < TOLERANCE:
            i += 1
        if debtor[1] < TOLERANCE:
            j += 1

    return settlements
