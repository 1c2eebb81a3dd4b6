"""
Cost-basis ledger.

The store-backed LedgerService lives in finledger.ledger.service.
"""

from finledger.ledger.cost_basis import DEFAULT_EPSILON, fold_holding

__all__ = ["DEFAULT_EPSILON", "fold_holding"]
