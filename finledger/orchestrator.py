"""
Component wiring for finledger.

This module ties together the engines and their collaborators:
1. Storage (Google Sheets when configured, in-memory otherwise)
2. Quotes (Yahoo Finance unless another provider is injected)
3. Notifications (written to the user's in-app feed)
4. Audit logging (structured log plus the audit store)

Request handlers and the job runner both get their services from
create_app_components(); nothing else constructs storage directly.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from finledger.alerts import PriceAlertEvaluator
from finledger.audit import AuditLogger
from finledger.ledger.service import LedgerService
from finledger.planning import GoalProjectionService
from finledger.scheduler import ObligationScheduler, SIPSyncJob, SubscriptionReminderJob
from finledger.services.notifications import StoredNotificationDispatcher
from finledger.services.quotes import QuoteProviderInterface, YahooFinanceQuoteService
from finledger.services.storage import (
    AlertStorageInterface,
    AuditStorageInterface,
    GoalStorageInterface,
    InMemoryStore,
    InvestmentStorageInterface,
    NotificationStorageInterface,
    ObligationStorageInterface,
)
from finledger.services.storage.google_sheets import (
    GoogleSheetsAlertStorage,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsGoalStorage,
    GoogleSheetsInvestmentStorage,
    GoogleSheetsNotificationStorage,
    GoogleSheetsObligationStorage,
)

logger = structlog.get_logger(__name__)


@dataclass
class StorageBackends:
    investments: InvestmentStorageInterface
    obligations: ObligationStorageInterface
    alerts: AlertStorageInterface
    goals: GoalStorageInterface
    notifications: NotificationStorageInterface
    audit: AuditStorageInterface


@dataclass
class AppComponents:
    storage: StorageBackends
    audit_logger: AuditLogger
    ledger: LedgerService
    scheduler: ObligationScheduler
    reminder_job: SubscriptionReminderJob
    sip_sync_job: SIPSyncJob
    alert_evaluator: PriceAlertEvaluator
    goal_projections: GoalProjectionService


def memory_backends(store: Optional[InMemoryStore] = None) -> StorageBackends:
    """Every interface served by one in-memory store."""
    store = store or InMemoryStore()
    return StorageBackends(
        investments=store,
        obligations=store,
        alerts=store,
        goals=store,
        notifications=store,
        audit=store,
    )


def sheets_backends(client: Optional[GoogleSheetsClient] = None) -> StorageBackends:
    client = client or GoogleSheetsClient()
    return StorageBackends(
        investments=GoogleSheetsInvestmentStorage(client),
        obligations=GoogleSheetsObligationStorage(client),
        alerts=GoogleSheetsAlertStorage(client),
        goals=GoogleSheetsGoalStorage(client),
        notifications=GoogleSheetsNotificationStorage(client),
        audit=GoogleSheetsAuditStorage(client),
    )


def create_app_components(
    use_storage: bool = True,
    storage: Optional[StorageBackends] = None,
    quotes: Optional[QuoteProviderInterface] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run against in-memory storage.
        storage: Explicit backends; overrides use_storage.
        quotes: Quote provider; defaults to Yahoo Finance.
    """
    if storage is None:
        if use_storage:
            try:
                storage = sheets_backends()
            except Exception as e:
                # Storage not configured - continue without it
                logger.warning("storage_not_configured", error=str(e))
                storage = memory_backends()
        else:
            storage = memory_backends()

    quotes = quotes or YahooFinanceQuoteService()
    audit_logger = AuditLogger(storage.audit)
    dispatcher = StoredNotificationDispatcher(storage.notifications)

    return AppComponents(
        storage=storage,
        audit_logger=audit_logger,
        ledger=LedgerService(storage.investments, audit_logger),
        scheduler=ObligationScheduler(storage.obligations, audit_logger),
        reminder_job=SubscriptionReminderJob(storage.obligations, dispatcher, audit_logger),
        sip_sync_job=SIPSyncJob(storage.obligations, quotes, audit_logger),
        alert_evaluator=PriceAlertEvaluator(storage.alerts, quotes, dispatcher, audit_logger),
        goal_projections=GoalProjectionService(storage.goals),
    )
