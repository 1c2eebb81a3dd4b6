"""
Goal Projection Engine

Estimates a monthly savings rate from recent cash flow, splits it evenly
across active goals and projects where each goal will stand at its
deadline. Nothing here is stored; projections are recomputed on request.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from finledger.config import get_settings
from finledger.models.planning import (
    CashTransaction,
    CashTransactionType,
    Goal,
    GoalProjection,
    GoalStatus,
    ProjectionReport,
    ProjectionStatus,
)
from finledger.services.storage.interface import GoalStorageInterface

# Deadlines are measured in 30-day months
MONTH = timedelta(days=30)


def average_monthly_savings(transactions: Iterable[CashTransaction]) -> float:
    """Mean of (income - expense) over the calendar months that have activity."""
    buckets: dict[tuple[int, int], float] = defaultdict(float)
    for t in transactions:
        key = (t.date.year, t.date.month)
        if t.type == CashTransactionType.INCOME:
            buckets[key] += t.amount
        elif t.type == CashTransactionType.EXPENSE:
            buckets[key] -= t.amount
        # Transfers move money between the user's own accounts

    if not buckets:
        return 0.0
    return sum(buckets.values()) / len(buckets)


def classify(
    probability: float,
    on_track: float = 85.0,
    at_risk: float = 60.0,
) -> ProjectionStatus:
    if probability >= on_track:
        return ProjectionStatus.ON_TRACK
    if probability >= at_risk:
        return ProjectionStatus.AT_RISK
    return ProjectionStatus.OFF_TRACK


def project_goal(
    goal: Goal,
    allocation: float,
    now: datetime,
    on_track: float = 85.0,
    at_risk: float = 60.0,
) -> GoalProjection:
    remaining = max(goal.target_amount - goal.current_amount, 0.0)

    months_left = 0.0
    if goal.deadline is not None:
        months_left = max((goal.deadline - now) / MONTH, 0.0)

    monthly_required = remaining / months_left if months_left > 0 and remaining > 0 else 0.0
    projected = goal.current_amount + allocation * months_left if months_left > 0 else goal.current_amount

    if goal.target_amount > 0:
        probability = min(max(projected / goal.target_amount * 100.0, 0.0), 100.0)
    else:
        probability = 100.0

    return GoalProjection(
        goal_id=goal.id,
        monthly_required=monthly_required,
        months_left=months_left,
        projected_at_deadline=projected,
        probability=probability,
        status=classify(probability, on_track, at_risk),
    )


def project_goals(
    goals: list[Goal],
    transactions: Iterable[CashTransaction],
    now: datetime,
    on_track: float = 85.0,
    at_risk: float = 60.0,
) -> ProjectionReport:
    """
    Project every goal of a user.

    Only active goals share the savings allocation, but every goal gets a
    projection.
    """
    avg = average_monthly_savings(transactions)
    active = [g for g in goals if g.status == GoalStatus.ACTIVE]
    allocation = max(avg, 0.0) / len(active) if active else 0.0

    return ProjectionReport(
        avg_monthly_savings=avg,
        per_goal_allocation=allocation,
        projections=[project_goal(g, allocation, now, on_track, at_risk) for g in goals],
    )


class GoalProjectionService:

    def __init__(self, storage: GoalStorageInterface):
        self._storage = storage
        self._settings = get_settings().app

    async def project_for_user(
        self,
        user_id: str,
        now: datetime,
        window_months: Optional[int] = None,
    ) -> ProjectionReport:
        months = self._settings.savings_window_months if window_months is None else window_months
        since = now - relativedelta(months=months)

        goals = await self._storage.list_goals(user_id)
        transactions = await self._storage.list_cash_transactions(
            user_id,
            since,
            types=[CashTransactionType.INCOME, CashTransactionType.EXPENSE],
        )
        return project_goals(
            goals,
            transactions,
            now,
            on_track=self._settings.goal_on_track_threshold,
            at_risk=self._settings.goal_at_risk_threshold,
        )
