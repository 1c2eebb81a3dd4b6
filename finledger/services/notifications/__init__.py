"""Notification dispatch."""

from finledger.services.notifications.interface import (
    NotificationDispatchError,
    NotificationDispatcherInterface,
)
from finledger.services.notifications.store_dispatcher import StoredNotificationDispatcher

__all__ = [
    "NotificationDispatchError",
    "NotificationDispatcherInterface",
    "StoredNotificationDispatcher",
]
