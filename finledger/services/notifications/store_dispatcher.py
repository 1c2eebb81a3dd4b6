"""
Store-backed dispatcher.

Delivery means writing an in-app notification record to the user's feed.
Push transports can wrap or replace this without touching the jobs.
"""

from typing import Any, Optional

import structlog

from finledger.models.notification import Notification, NotificationKind
from finledger.services.notifications.interface import (
    NotificationDispatchError,
    NotificationDispatcherInterface,
)
from finledger.services.storage.interface import (
    NotificationStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)


class StoredNotificationDispatcher(NotificationDispatcherInterface):

    def __init__(self, storage: NotificationStorageInterface):
        self._storage = storage

    async def dispatch(
        self,
        user_id: str,
        title: str,
        message: str,
        kind: NotificationKind,
        metadata: Optional[dict[str, Any]] = None,
        dedupe_key: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            kind=kind,
            metadata=metadata or {},
            dedupe_key=dedupe_key,
        )
        try:
            await self._storage.save_notification(notification)
        except StorageError as e:
            raise NotificationDispatchError(f"Could not store notification: {e}") from e

        logger.info(
            "notification_dispatched",
            user_id=user_id,
            kind=kind.value,
            notification_id=str(notification.id),
        )
        return notification

    async def already_sent(
        self,
        user_id: str,
        kind: NotificationKind,
        dedupe_key: str,
    ) -> bool:
        return await self._storage.notification_exists(user_id, kind, dedupe_key)
