"""
Average-cost basis fold.

A Holding is never patched in place. It is rebuilt from the complete,
date-ordered entry sequence every time, so the same history always yields
the same position.
"""

from typing import Iterable

from finledger.models.ledger import EntryType, Holding, LedgerEntry

DEFAULT_EPSILON = 1e-6


def fold_holding(
    entries: Iterable[LedgerEntry],
    epsilon: float = DEFAULT_EPSILON,
) -> Holding:
    """
    Reduce ledger entries into a Holding using average cost.

    - buy/sip add units and capitalize amount + fees + taxes
    - sell removes units at the running average; selling more than is held
      liquidates the position
    - fee adds to cost basis only
    - dividend leaves the holding untouched

    Once quantity drops below `epsilon` both quantity and cost basis snap to
    exactly zero, so a flat position never carries residual cost.
    """
    quantity = 0.0
    cost_basis = 0.0

    # sorted() is stable: same-instant entries keep their recorded order
    for entry in sorted(entries, key=lambda e: e.date):
        if entry.type in (EntryType.BUY, EntryType.SIP):
            quantity += entry.quantity
            cost_basis += entry.amount + entry.fees + entry.taxes

        elif entry.type == EntryType.SELL:
            if quantity <= 0:
                continue
            avg = cost_basis / quantity
            reduce_by = min(quantity, entry.quantity)
            cost_basis -= avg * reduce_by
            quantity -= reduce_by
            if quantity < epsilon or quantity == 0:
                quantity = 0.0
                cost_basis = 0.0

        elif entry.type == EntryType.FEE:
            cost_basis += entry.amount

    return Holding(quantity=quantity, cost_basis=max(cost_basis, 0.0))
