"""
Recurring Obligation Models

Covers the three kinds of repeating money commitments:
- Subscriptions: open-ended, cadence-driven due dates
- Committees: fixed-length installment schedules (rotating savings groups)
- SIPs: systematic investment plans debited on a calendar rule
"""

from datetime import date
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)

from finledger.models.base import UTCDateTime, utc_now


# =============================================================================
# ENUMS
# =============================================================================

class Cadence(str, Enum):
    """Repetition rule for a subscription."""
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ONE_TIME = "one_time"  # Terminal after payment


class ReminderStage(str, Enum):
    """Where a subscription sits relative to its due date."""
    DUE_SOON = "due_soon"
    DUE_TODAY = "due_today"
    OVERDUE = "overdue"


class SIPFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class SIPStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    STOPPED = "stopped"


# =============================================================================
# SUBSCRIPTIONS
# =============================================================================

class Subscription(BaseModel):
    """
    A recurring obligation with a cadence-driven due date.

    next_due_date only moves through the scheduler's rollforward.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    merchant: Optional[str] = Field(default=None, max_length=200)
    amount: float = Field(..., gt=0)
    currency: str = Field(default="INR", max_length=8)
    cadence: Cadence
    next_due_date: date
    end_date: Optional[date] = None
    remind_days_before: int = Field(default=3, ge=0, le=30)
    active: bool = True
    paid: bool = False
    paid_date: Optional[UTCDateTime] = None
    payment_method_label: Optional[str] = Field(default=None, max_length=100)
    category: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_at: UTCDateTime = Field(default_factory=utc_now)

    @property
    def display_name(self) -> str:
        return self.merchant or self.name


# =============================================================================
# COMMITTEES
# =============================================================================

class Committee(BaseModel):
    """
    A rotating savings group with a fixed number of monthly installments.

    duration is read exactly once, when the installment schedule is
    materialized. Later edits do not regenerate the schedule.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    payout_amount: float = Field(..., ge=0)
    installment_amount: float = Field(
        default=0.0,
        ge=0,
        description="Per-period contribution copied onto each installment"
    )
    total_members: Optional[int] = Field(default=None, ge=1)
    duration: int = Field(..., ge=1, le=600)
    start_date: date
    payment_day: int = Field(default=1, ge=1, le=31)
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_at: UTCDateTime = Field(default_factory=utc_now)


class CommitteeInstallment(BaseModel):
    """One numbered installment of a committee."""

    id: UUID = Field(default_factory=uuid4)
    committee_id: UUID
    user_id: str = Field(..., min_length=1)
    month: int = Field(..., ge=1)
    amount: Optional[float] = Field(default=None, ge=0)
    paid: bool = False
    paid_date: Optional[UTCDateTime] = None


# =============================================================================
# SIPs
# =============================================================================

class SIP(BaseModel):
    """A systematic investment plan tracked by units and invested amount."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    symbol: Optional[str] = Field(default=None, max_length=40)
    amount: float = Field(..., gt=0)
    frequency: SIPFrequency = SIPFrequency.MONTHLY
    sip_date: int = Field(default=1, ge=1, le=31)
    start_date: date
    end_date: Optional[date] = None
    status: SIPStatus = SIPStatus.ACTIVE
    units: float = Field(default=0.0, ge=0)
    total_invested: float = Field(default=0.0, ge=0)
    current_value: float = Field(default=0.0, ge=0)
    last_price: Optional[float] = Field(default=None, ge=0)
    last_debit_date: Optional[date] = None
    last_updated: Optional[UTCDateTime] = None

    @model_validator(mode='after')
    def validate_dates(self) -> 'SIP':
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("SIP end date cannot be before start date")
        return self


# =============================================================================
# BATCH RESULTS
# =============================================================================

class ReminderResult(BaseModel):
    """Outcome of one subscription reminder sweep."""

    checked: int = Field(default=0, ge=0)
    notified: int = Field(default=0, ge=0)
    dispatch_failures: int = Field(default=0, ge=0)


class SIPSyncResult(BaseModel):
    """Outcome of one SIP sync for a user."""

    total: int = Field(default=0, ge=0)
    price_updated: int = Field(default=0, ge=0)
    installments_posted: int = Field(default=0, ge=0)
