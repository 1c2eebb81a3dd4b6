"""
In-Memory Storage Implementation

Backs every storage interface with plain dicts. Used by the test suite and
by the job runner when no spreadsheet is configured.

Records are copied on the way in and on the way out so callers can never
mutate stored state without going through an update call.
"""

from datetime import date, datetime
from typing import Iterable, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

from finledger.models.alerts import AlertStatus, PriceAlert
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
from finledger.services.storage.interface import (
    AlertStorageInterface,
    AuditStorageInterface,
    DuplicateError,
    GoalStorageInterface,
    InvestmentStorageInterface,
    NotFoundError,
    NotificationStorageInterface,
    ObligationStorageInterface,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _copy(record: ModelT) -> ModelT:
    return record.model_copy(deep=True)


class InMemoryStore(
    InvestmentStorageInterface,
    ObligationStorageInterface,
    AlertStorageInterface,
    GoalStorageInterface,
    NotificationStorageInterface,
    AuditStorageInterface,
):
    """Single object implementing every storage interface."""

    def __init__(self):
        self.investments: dict[UUID, Investment] = {}
        self.entries: dict[UUID, LedgerEntry] = {}
        self.subscriptions: dict[UUID, Subscription] = {}
        self.committees: dict[UUID, Committee] = {}
        self.installments: dict[UUID, CommitteeInstallment] = {}
        self.sips: dict[UUID, SIP] = {}
        self.alerts: dict[UUID, PriceAlert] = {}
        self.goals: dict[UUID, Goal] = {}
        self.cash_transactions: dict[UUID, CashTransaction] = {}
        self.notifications: list[Notification] = []
        self.events: list[AuditEvent] = []

    @staticmethod
    def _owned(table: dict, user_id: str, record_id: UUID):
        record = table.get(record_id)
        if record is None or record.user_id != user_id:
            return None
        return _copy(record)

    @staticmethod
    def _replace(table: dict, record, kind: str) -> bool:
        if record.id not in table:
            raise NotFoundError(f"{kind} not found: {record.id}")
        table[record.id] = _copy(record)
        return True

    # -------------------------------------------------------------------------
    # Investments
    # -------------------------------------------------------------------------

    async def save_investment(self, investment: Investment) -> bool:
        self.investments[investment.id] = _copy(investment)
        return True

    async def get_investment(
        self,
        user_id: str,
        investment_id: UUID,
    ) -> Optional[Investment]:
        return self._owned(self.investments, user_id, investment_id)

    async def update_investment(self, investment: Investment) -> bool:
        return self._replace(self.investments, investment, "Investment")

    async def save_entry(self, entry: LedgerEntry) -> bool:
        if entry.id in self.entries:
            raise DuplicateError(f"Ledger entry already exists: {entry.id}")
        self.entries[entry.id] = _copy(entry)
        return True

    async def list_entries(
        self,
        user_id: str,
        investment_id: UUID,
    ) -> list[LedgerEntry]:
        entries = [
            _copy(e) for e in self.entries.values()
            if e.user_id == user_id and e.investment_id == investment_id
        ]
        # Stable sort keeps insertion order for same-instant entries
        entries.sort(key=lambda e: e.date)
        return entries

    async def delete_entry(
        self,
        user_id: str,
        investment_id: UUID,
        entry_id: UUID,
    ) -> bool:
        entry = self.entries.get(entry_id)
        if entry is None or entry.user_id != user_id or entry.investment_id != investment_id:
            return False
        del self.entries[entry_id]
        return True

    # -------------------------------------------------------------------------
    # Obligations
    # -------------------------------------------------------------------------

    async def save_subscription(self, subscription: Subscription) -> bool:
        self.subscriptions[subscription.id] = _copy(subscription)
        return True

    async def get_subscription(
        self,
        user_id: str,
        subscription_id: UUID,
    ) -> Optional[Subscription]:
        return self._owned(self.subscriptions, user_id, subscription_id)

    async def update_subscription(self, subscription: Subscription) -> bool:
        return self._replace(self.subscriptions, subscription, "Subscription")

    async def list_subscriptions_due(
        self,
        due_on_or_before: date,
    ) -> list[Subscription]:
        due = [
            _copy(s) for s in self.subscriptions.values()
            if s.active and s.next_due_date <= due_on_or_before
        ]
        due.sort(key=lambda s: s.next_due_date)
        return due

    async def create_committee(
        self,
        committee: Committee,
        installments: list[CommitteeInstallment],
    ) -> bool:
        # Check everything before writing anything
        if committee.id in self.committees:
            raise DuplicateError(f"Committee already exists: {committee.id}")
        for installment in installments:
            if installment.id in self.installments:
                raise DuplicateError(f"Installment already exists: {installment.id}")

        self.committees[committee.id] = _copy(committee)
        for installment in installments:
            self.installments[installment.id] = _copy(installment)
        return True

    async def get_committee(
        self,
        user_id: str,
        committee_id: UUID,
    ) -> Optional[Committee]:
        return self._owned(self.committees, user_id, committee_id)

    async def update_committee(self, committee: Committee) -> bool:
        return self._replace(self.committees, committee, "Committee")

    async def list_installments(
        self,
        user_id: str,
        committee_id: UUID,
    ) -> list[CommitteeInstallment]:
        installments = [
            _copy(i) for i in self.installments.values()
            if i.user_id == user_id and i.committee_id == committee_id
        ]
        installments.sort(key=lambda i: i.month)
        return installments

    async def update_installment(self, installment: CommitteeInstallment) -> bool:
        return self._replace(self.installments, installment, "Installment")

    async def save_sip(self, sip: SIP) -> bool:
        self.sips[sip.id] = _copy(sip)
        return True

    async def list_sips(self, user_id: str) -> list[SIP]:
        return [_copy(s) for s in self.sips.values() if s.user_id == user_id]

    async def update_sip(self, sip: SIP) -> bool:
        return self._replace(self.sips, sip, "SIP")

    # -------------------------------------------------------------------------
    # Alerts
    # -------------------------------------------------------------------------

    async def save_alert(self, alert: PriceAlert) -> bool:
        self.alerts[alert.id] = _copy(alert)
        return True

    async def get_alert(
        self,
        user_id: str,
        alert_id: UUID,
    ) -> Optional[PriceAlert]:
        return self._owned(self.alerts, user_id, alert_id)

    async def list_active_alerts(self) -> list[PriceAlert]:
        return [
            _copy(a) for a in self.alerts.values()
            if a.status == AlertStatus.ACTIVE
        ]

    async def update_alert(self, alert: PriceAlert) -> bool:
        return self._replace(self.alerts, alert, "Alert")

    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------

    async def save_goal(self, goal: Goal) -> bool:
        self.goals[goal.id] = _copy(goal)
        return True

    async def list_goals(self, user_id: str) -> list[Goal]:
        return [_copy(g) for g in self.goals.values() if g.user_id == user_id]

    async def save_cash_transaction(self, transaction: CashTransaction) -> bool:
        self.cash_transactions[transaction.id] = _copy(transaction)
        return True

    async def list_cash_transactions(
        self,
        user_id: str,
        since: datetime,
        types: Optional[Iterable[CashTransactionType]] = None,
    ) -> list[CashTransaction]:
        wanted = set(types) if types is not None else None
        return [
            _copy(t) for t in self.cash_transactions.values()
            if t.user_id == user_id
            and t.date >= since
            and (wanted is None or t.type in wanted)
        ]

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    async def save_notification(self, notification: Notification) -> bool:
        self.notifications.append(_copy(notification))
        return True

    async def notification_exists(
        self,
        user_id: str,
        kind: NotificationKind,
        dedupe_key: str,
    ) -> bool:
        return any(
            n.user_id == user_id and n.kind == kind and n.dedupe_key == dedupe_key
            for n in self.notifications
        )

    async def list_notifications(
        self,
        user_id: str,
        limit: int = 50,
    ) -> list[Notification]:
        mine = [_copy(n) for n in self.notifications if n.user_id == user_id]
        mine.sort(key=lambda n: n.created_at, reverse=True)
        return mine[:limit]

    # -------------------------------------------------------------------------
    # Audit
    # -------------------------------------------------------------------------

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(_copy(event))
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [_copy(e) for e in self.events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            _copy(e) for e in self.events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self.events, key=lambda e: e.timestamp, reverse=True)
        return [_copy(e) for e in events[:limit]]
