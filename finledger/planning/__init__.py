"""Goal projections and what-if simulations."""

from finledger.planning.goals import (
    GoalProjectionService,
    average_monthly_savings,
    classify,
    project_goal,
    project_goals,
)
from finledger.planning.whatif import future_value, goal_eta_months, simulate

__all__ = [
    "GoalProjectionService",
    "average_monthly_savings",
    "classify",
    "future_value",
    "goal_eta_months",
    "project_goal",
    "project_goals",
    "simulate",
]
