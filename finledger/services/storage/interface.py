"""
Abstract Storage Interfaces

DESIGN DECISION: The engine never talks to a database directly. Every
entity is read and written through one of these interfaces, which lets us:
1. Run against Google Sheets for a single household
2. Use in-memory storage for testing
3. Swap in a real database later without touching the algorithms

Semantics expected from every implementation:
- Records are keyed by id and scoped by the owning user id
- Writes are last-writer-wins per id
- Failures raise StorageError; the engine does not retry them
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Iterable, Optional
from uuid import UUID

from finledger.models.alerts import PriceAlert
from finledger.models.audit import AuditEvent
from finledger.models.ledger import Investment, LedgerEntry
from finledger.models.notification import Notification, NotificationKind
from finledger.models.planning import CashTransaction, CashTransactionType, Goal
from finledger.models.schedule import (
    SIP,
    Committee,
    CommitteeInstallment,
    Subscription,
)


class InvestmentStorageInterface(ABC):
    """Investments and their ledger entries."""

    @abstractmethod
    async def save_investment(self, investment: Investment) -> bool:
        pass

    @abstractmethod
    async def get_investment(
        self,
        user_id: str,
        investment_id: UUID,
    ) -> Optional[Investment]:
        pass

    @abstractmethod
    async def update_investment(self, investment: Investment) -> bool:
        """
        Update an existing investment.

        Raises:
            NotFoundError: If the investment doesn't exist
        """
        pass

    @abstractmethod
    async def save_entry(self, entry: LedgerEntry) -> bool:
        """
        Append a ledger entry.

        Raises:
            DuplicateError: If an entry with the same id exists
        """
        pass

    @abstractmethod
    async def list_entries(
        self,
        user_id: str,
        investment_id: UUID,
    ) -> list[LedgerEntry]:
        """
        All entries of one investment, ordered by date ascending.
        """
        pass

    @abstractmethod
    async def delete_entry(
        self,
        user_id: str,
        investment_id: UUID,
        entry_id: UUID,
    ) -> bool:
        """Returns False if the entry was not found."""
        pass


class ObligationStorageInterface(ABC):
    """Subscriptions, committees with their installments, and SIPs."""

    @abstractmethod
    async def save_subscription(self, subscription: Subscription) -> bool:
        pass

    @abstractmethod
    async def get_subscription(
        self,
        user_id: str,
        subscription_id: UUID,
    ) -> Optional[Subscription]:
        pass

    @abstractmethod
    async def update_subscription(self, subscription: Subscription) -> bool:
        pass

    @abstractmethod
    async def list_subscriptions_due(
        self,
        due_on_or_before: date,
    ) -> list[Subscription]:
        """
        Active subscriptions of all users due on or before a date,
        ordered by next_due_date ascending.
        """
        pass

    @abstractmethod
    async def create_committee(
        self,
        committee: Committee,
        installments: list[CommitteeInstallment],
    ) -> bool:
        """
        Persist a committee and its full installment schedule atomically.

        Either everything is written or nothing is.
        """
        pass

    @abstractmethod
    async def get_committee(
        self,
        user_id: str,
        committee_id: UUID,
    ) -> Optional[Committee]:
        pass

    @abstractmethod
    async def update_committee(self, committee: Committee) -> bool:
        pass

    @abstractmethod
    async def list_installments(
        self,
        user_id: str,
        committee_id: UUID,
    ) -> list[CommitteeInstallment]:
        """Installments ordered by month ascending."""
        pass

    @abstractmethod
    async def update_installment(self, installment: CommitteeInstallment) -> bool:
        pass

    @abstractmethod
    async def save_sip(self, sip: SIP) -> bool:
        pass

    @abstractmethod
    async def list_sips(self, user_id: str) -> list[SIP]:
        pass

    @abstractmethod
    async def update_sip(self, sip: SIP) -> bool:
        pass


class AlertStorageInterface(ABC):
    """Price alerts."""

    @abstractmethod
    async def save_alert(self, alert: PriceAlert) -> bool:
        pass

    @abstractmethod
    async def get_alert(
        self,
        user_id: str,
        alert_id: UUID,
    ) -> Optional[PriceAlert]:
        pass

    @abstractmethod
    async def list_active_alerts(self) -> list[PriceAlert]:
        """All alerts with status=active, across users."""
        pass

    @abstractmethod
    async def update_alert(self, alert: PriceAlert) -> bool:
        pass


class GoalStorageInterface(ABC):
    """Goals and the cash-flow history used to project them."""

    @abstractmethod
    async def save_goal(self, goal: Goal) -> bool:
        pass

    @abstractmethod
    async def list_goals(self, user_id: str) -> list[Goal]:
        pass

    @abstractmethod
    async def save_cash_transaction(self, transaction: CashTransaction) -> bool:
        pass

    @abstractmethod
    async def list_cash_transactions(
        self,
        user_id: str,
        since: datetime,
        types: Optional[Iterable[CashTransactionType]] = None,
    ) -> list[CashTransaction]:
        """Transactions dated on or after `since`, optionally filtered by type."""
        pass


class NotificationStorageInterface(ABC):
    """In-app notification feed."""

    @abstractmethod
    async def save_notification(self, notification: Notification) -> bool:
        pass

    @abstractmethod
    async def notification_exists(
        self,
        user_id: str,
        kind: NotificationKind,
        dedupe_key: str,
    ) -> bool:
        pass

    @abstractmethod
    async def list_notifications(
        self,
        user_id: str,
        limit: int = 50,
    ) -> list[Notification]:
        """Newest first."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Related events in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Events for one entity in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
