"""
Store-backed ledger operations.

The only way an Investment's quantity and average price change is through
recompute(), which refolds the full entry history.
"""

from typing import Optional
from uuid import UUID

import structlog

from finledger.audit import AuditLogger
from finledger.config import get_settings
from finledger.ledger.cost_basis import fold_holding
from finledger.models.base import utc_now
from finledger.models.ledger import Holding, Investment, LedgerEntry
from finledger.services.storage.interface import (
    InvestmentStorageInterface,
    NotFoundError,
)
from finledger.validation.validator import LedgerEntryValidator, LedgerValidationError

logger = structlog.get_logger(__name__)


class LedgerService:

    def __init__(
        self,
        storage: InvestmentStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerEntryValidator] = None,
        epsilon: Optional[float] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._validator = validator or LedgerEntryValidator()
        self._epsilon = (
            get_settings().app.zero_quantity_epsilon if epsilon is None else epsilon
        )

    async def _require_investment(self, user_id: str, investment_id: UUID) -> Investment:
        investment = await self._storage.get_investment(user_id, investment_id)
        if investment is None:
            raise NotFoundError(f"Investment not found: {investment_id}")
        return investment

    async def record_entry(
        self,
        entry: LedgerEntry,
        correlation_id: Optional[UUID] = None,
    ) -> Holding:
        """
        Validate, persist and fold a new entry.

        Raises:
            NotFoundError: If the investment doesn't exist for this user
            LedgerValidationError: If validation reports errors; nothing is written
        """
        await self._require_investment(entry.user_id, entry.investment_id)
        history = await self._storage.list_entries(entry.user_id, entry.investment_id)

        result = self._validator.validate(entry, history)
        if result.has_errors:
            await self._audit.log_validation_failed(
                entry_id=entry.id,
                issues=[issue.model_dump() for issue in result.issues],
                correlation_id=correlation_id,
            )
            raise LedgerValidationError(result)

        for warning in result.warnings:
            logger.warning("ledger_entry_warning", entry_id=str(entry.id), warning=warning)

        await self._storage.save_entry(entry)
        await self._audit.log_entry_recorded(
            entry_id=entry.id,
            investment_id=entry.investment_id,
            entry_type=entry.type.value,
            amount=entry.amount,
            correlation_id=correlation_id,
        )
        return await self.recompute(entry.user_id, entry.investment_id, correlation_id)

    async def delete_entry(
        self,
        user_id: str,
        investment_id: UUID,
        entry_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Holding:
        """
        Remove an entry and refold.

        Raises:
            NotFoundError: If the entry doesn't belong to this investment
        """
        deleted = await self._storage.delete_entry(user_id, investment_id, entry_id)
        if not deleted:
            raise NotFoundError(f"Ledger entry not found: {entry_id}")

        await self._audit.log_entry_deleted(
            entry_id=entry_id,
            investment_id=investment_id,
            correlation_id=correlation_id,
        )
        return await self.recompute(user_id, investment_id, correlation_id)

    async def recompute(
        self,
        user_id: str,
        investment_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Holding:
        """Refold the complete history and write the result onto the investment."""
        investment = await self._require_investment(user_id, investment_id)
        entries = await self._storage.list_entries(user_id, investment_id)

        holding = fold_holding(entries, self._epsilon)

        investment.quantity = holding.quantity
        investment.avg_buy_price = holding.avg_buy_price
        investment.updated_at = utc_now()
        await self._storage.update_investment(investment)

        await self._audit.log_holding_recomputed(
            investment_id=investment_id,
            quantity=holding.quantity,
            avg_buy_price=holding.avg_buy_price,
            entry_count=len(entries),
            correlation_id=correlation_id,
        )
        return holding
