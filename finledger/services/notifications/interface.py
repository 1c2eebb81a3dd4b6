"""Notification dispatch interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from finledger.models.notification import Notification, NotificationKind


class NotificationDispatcherInterface(ABC):
    """
    Delivers a notification to a user.

    Batch jobs treat any exception from dispatch() as a per-item failure:
    it is logged and counted, never retried.
    """

    @abstractmethod
    async def dispatch(
        self,
        user_id: str,
        title: str,
        message: str,
        kind: NotificationKind,
        metadata: Optional[dict[str, Any]] = None,
        dedupe_key: Optional[str] = None,
    ) -> Notification:
        pass

    async def already_sent(
        self,
        user_id: str,
        kind: NotificationKind,
        dedupe_key: str,
    ) -> bool:
        """Dispatchers without history never report duplicates."""
        return False


class NotificationDispatchError(Exception):
    """A notification could not be delivered."""
    pass
