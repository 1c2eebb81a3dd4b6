"""
Ledger Entry Validation

DESIGN DECISION: The fold itself trusts its input. Sign conventions are
enforced by the LedgerEntry model; everything that needs the entry's
history is checked here, before the entry is persisted:

- Zero-quantity buys and zero-amount fees are suspicious but legal
- Entries dated in the future are rejected
- Sells against an empty position are reported (the fold skips them)
- Sells larger than the position either liquidate (clamp) or are rejected,
  depending on the configured oversell policy

IMPORTANT: Validation NEVER silently fixes issues.
It reports them and lets the caller decide.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from finledger.config import get_settings
from finledger.ledger.cost_basis import fold_holding
from finledger.models.base import utc_now
from finledger.models.ledger import EntryType, Holding, LedgerEntry
from finledger.models.validation import ValidationIssue, ValidationResult


class LedgerValidationError(Exception):
    """Raised when an entry fails validation and must not be recorded."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(i.message for i in result.issues if i.severity == "error")
        super().__init__(f"Ledger entry {result.entry_id} rejected: {messages}")


class LedgerEntryValidator:
    """
    Validates one ledger entry against the entries already recorded for
    the same investment.
    """

    def __init__(
        self,
        oversell_policy: Optional[str] = None,
        future_date_tolerance_days: Optional[int] = None,
        epsilon: Optional[float] = None,
    ):
        settings = get_settings().app
        self._oversell_policy = (
            settings.oversell_policy if oversell_policy is None else oversell_policy
        )
        self._future_tolerance = timedelta(
            days=settings.future_date_tolerance_days
            if future_date_tolerance_days is None
            else future_date_tolerance_days
        )
        self._epsilon = settings.zero_quantity_epsilon if epsilon is None else epsilon

    def validate(
        self,
        entry: LedgerEntry,
        history: Iterable[LedgerEntry],
        now: Optional[datetime] = None,
    ) -> ValidationResult:
        """
        Run all checks and collect issues.

        The position a sell is checked against is the fold of every prior
        entry dated on or before the sell.
        """
        now = now or utc_now()
        issues: list[ValidationIssue] = []

        issues.extend(self._check_amounts(entry))
        issues.extend(self._check_date(entry, now))

        if entry.type == EntryType.SELL:
            prior = [e for e in history if e.id != entry.id and e.date <= entry.date]
            issues.extend(self._check_sell(entry, fold_holding(prior, self._epsilon)))

        return ValidationResult(entry_id=entry.id, issues=issues)

    def _check_amounts(self, entry: LedgerEntry) -> list[ValidationIssue]:
        issues = []

        if entry.type in (EntryType.BUY, EntryType.SIP) and entry.quantity == 0:
            issues.append(ValidationIssue(
                field="quantity",
                issue_type="zero_quantity",
                message=f"A {entry.type.value} entry with zero quantity only adds cost",
                severity="warning",
                suggested_fix="Check the number of units",
            ))

        if entry.type in (EntryType.FEE, EntryType.DIVIDEND) and entry.amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="zero_amount",
                message=f"A {entry.type.value} entry with zero amount has no effect",
                severity="warning",
            ))

        return issues

    def _check_date(self, entry: LedgerEntry, now: datetime) -> list[ValidationIssue]:
        if entry.date > now + self._future_tolerance:
            return [ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Entry date {entry.date.date().isoformat()} is in the future",
                severity="error",
                suggested_fix="Record the transaction once it has happened",
            )]
        return []

    def _check_sell(self, entry: LedgerEntry, holding: Holding) -> list[ValidationIssue]:
        if holding.quantity <= 0:
            return [ValidationIssue(
                field="quantity",
                issue_type="no_position",
                message="Sell recorded with no open position; it will not change the holding",
                severity="warning",
            )]

        if entry.quantity > holding.quantity:
            reject = self._oversell_policy == "reject"
            return [ValidationIssue(
                field="quantity",
                issue_type="oversell",
                message=(
                    f"Selling {entry.quantity:g} units but only "
                    f"{holding.quantity:g} are held"
                ),
                severity="error" if reject else "warning",
                suggested_fix=None if reject else "The whole position will be liquidated",
            )]

        return []
