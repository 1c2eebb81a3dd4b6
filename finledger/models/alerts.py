"""
Price Alert Models

An alert watches one symbol for a price crossing. A notify-once alert
terminates on its first trigger; a recurring alert stays active and is
rate-limited by its cooldown.
"""

from datetime import timedelta
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finledger.models.base import UTCDateTime, utc_now


class AlertDirection(str, Enum):
    ABOVE = "above"
    BELOW = "below"


class AlertStatus(str, Enum):
    ACTIVE = "active"
    TRIGGERED = "triggered"  # Terminal, notify-once alerts only


class PriceAlert(BaseModel):
    """A user's price alert on a market symbol."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1, max_length=40)
    direction: AlertDirection
    target_price: float = Field(..., gt=0)
    status: AlertStatus = AlertStatus.ACTIVE
    notify_once: bool = True
    cooldown_minutes: int = Field(default=60, ge=1)
    last_checked_at: Optional[UTCDateTime] = None
    last_notified_at: Optional[UTCDateTime] = None
    triggered_at: Optional[UTCDateTime] = None
    created_at: UTCDateTime = Field(default_factory=utc_now)

    @field_validator('symbol')
    @classmethod
    def upper_symbol(cls, v: str) -> str:
        return v.upper()

    @property
    def cooldown(self) -> timedelta:
        return timedelta(minutes=self.cooldown_minutes)


class Quote(BaseModel):
    """A market quote fetched for one evaluation cycle. Never persisted."""

    symbol: str
    price: float = Field(..., ge=0)
    previous_close: Optional[float] = None
    currency: Optional[str] = None

    @property
    def change(self) -> Optional[float]:
        if self.previous_close is None:
            return None
        return self.price - self.previous_close


class AlertEvaluationSummary(BaseModel):
    """Outcome of one batch evaluation."""

    checked: int = Field(default=0, ge=0)
    triggered: int = Field(default=0, ge=0)
    skipped_no_quote: int = Field(default=0, ge=0)
    dispatch_failures: int = Field(default=0, ge=0)
