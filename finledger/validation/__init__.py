"""Boundary validation for ledger entries."""

from finledger.validation.validator import LedgerEntryValidator, LedgerValidationError

__all__ = ["LedgerEntryValidator", "LedgerValidationError"]
