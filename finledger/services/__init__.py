"""Services package."""

from finledger.services.notifications import (
    NotificationDispatchError,
    NotificationDispatcherInterface,
    StoredNotificationDispatcher,
)
from finledger.services.quotes import (
    QuoteProviderError,
    QuoteProviderInterface,
    YahooFinanceQuoteService,
)
from finledger.services.storage import (
    AlertStorageInterface,
    AuditStorageInterface,
    DuplicateError,
    GoalStorageInterface,
    InMemoryStore,
    InvestmentStorageInterface,
    NotFoundError,
    NotificationStorageInterface,
    ObligationStorageInterface,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    # Notification services
    "NotificationDispatchError",
    "NotificationDispatcherInterface",
    "StoredNotificationDispatcher",
    # Quote services
    "QuoteProviderError",
    "QuoteProviderInterface",
    "YahooFinanceQuoteService",
    # Storage services
    "AlertStorageInterface",
    "AuditStorageInterface",
    "DuplicateError",
    "GoalStorageInterface",
    "InMemoryStore",
    "InvestmentStorageInterface",
    "NotFoundError",
    "NotificationStorageInterface",
    "ObligationStorageInterface",
    "StorageConnectionError",
    "StorageError",
]
