"""
Planning Models

Goals, the cash-flow history used to estimate a savings rate, and the
inputs/outputs of goal projections and what-if simulations.

Projections are COMPUTED on request and never stored.
"""

from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from finledger.models.base import UTCDateTime, utc_now


class GoalStatus(str, Enum):
    ACTIVE = "active"
    ACHIEVED = "achieved"
    PAUSED = "paused"


class CashTransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"  # Ignored by the savings estimate


class ProjectionStatus(str, Enum):
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    OFF_TRACK = "off_track"


class Goal(BaseModel):
    """A savings goal."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: float = Field(..., ge=0)
    current_amount: float = Field(default=0.0, ge=0)
    deadline: Optional[UTCDateTime] = None
    status: GoalStatus = GoalStatus.ACTIVE
    created_at: UTCDateTime = Field(default_factory=utc_now)


class CashTransaction(BaseModel):
    """An already-parsed income/expense record."""

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    type: CashTransactionType
    amount: float = Field(..., ge=0)
    date: UTCDateTime
    category: Optional[str] = Field(default=None, max_length=100)


class GoalProjection(BaseModel):
    """Projection for a single goal."""

    goal_id: UUID
    monthly_required: float
    months_left: float
    projected_at_deadline: float
    probability: float = Field(..., ge=0.0, le=100.0)
    status: ProjectionStatus


class ProjectionReport(BaseModel):
    """All goal projections for a user plus the savings inputs used."""

    avg_monthly_savings: float
    per_goal_allocation: float
    projections: list[GoalProjection] = Field(default_factory=list)


class WhatIfScenario(BaseModel):
    """
    Inputs to a compounding simulation.

    monthly_contribution_alt is the "improved" plan compared against the
    base plan; it defaults to the base contribution.
    """

    current_corpus: float = Field(default=0.0, ge=0)
    monthly_contribution: float = Field(default=0.0, ge=0)
    monthly_contribution_alt: Optional[float] = Field(default=None, ge=0)
    annual_return_percent: float = Field(default=12.0, ge=-100.0, le=100.0)
    years: float = Field(default=10.0, gt=0, le=100)
    goal_amount: float = Field(default=0.0, ge=0)

    @property
    def improved_contribution(self) -> float:
        if self.monthly_contribution_alt is None:
            return self.monthly_contribution
        return self.monthly_contribution_alt


class WhatIfResult(BaseModel):
    base_projection: float
    improved_projection: float
    delta: float
    goal_eta_months: Optional[int] = None
