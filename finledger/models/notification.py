"""In-app notification records written by the notification dispatcher."""

from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finledger.models.base import UTCDateTime, utc_now


class NotificationKind(str, Enum):
    INVESTMENT_ALERT = "investment_alert"
    BILL_REMINDER = "bill_reminder"
    GENERAL = "general"


class Notification(BaseModel):
    """
    A notification shown in the user's feed.

    dedupe_key lets batch jobs avoid sending the same reminder twice.
    """

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., max_length=1000)
    kind: NotificationKind = NotificationKind.GENERAL
    metadata: dict[str, Any] = Field(default_factory=dict)
    dedupe_key: Optional[str] = Field(default=None, max_length=300)
    read: bool = False
    created_at: UTCDateTime = Field(default_factory=utc_now)
