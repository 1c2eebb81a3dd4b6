"""
What-If Compounding Simulator

Monthly compounding of a lump sum plus an annuity-due contribution stream
(each contribution is made at the start of its month).
"""

import math
from typing import Optional

from finledger.models.planning import WhatIfResult, WhatIfScenario

DEFAULT_MAX_MONTHS = 600


def future_value(
    corpus: float,
    monthly_contribution: float,
    annual_return_percent: float,
    years: float,
) -> float:
    """Value after `years`, rounded to whole months (at least one)."""
    r = annual_return_percent / 100 / 12
    # Half months round up
    n = max(math.floor(years * 12 + 0.5), 1)

    fv_corpus = corpus * (1 + r) ** n
    if r == 0:
        fv_contributions = monthly_contribution * n
    else:
        fv_contributions = monthly_contribution * (((1 + r) ** n - 1) / r) * (1 + r)
    return fv_corpus + fv_contributions


def goal_eta_months(
    corpus: float,
    monthly_contribution: float,
    annual_return_percent: float,
    goal_amount: float,
    max_months: int = DEFAULT_MAX_MONTHS,
) -> Optional[int]:
    """First month at which the projection reaches the goal, None past the horizon."""
    for month in range(1, max_months + 1):
        if future_value(corpus, monthly_contribution, annual_return_percent, month / 12) >= goal_amount:
            return month
    return None


def simulate(
    scenario: WhatIfScenario,
    max_months: int = DEFAULT_MAX_MONTHS,
) -> WhatIfResult:
    """Compare the base contribution plan against the improved one."""
    base = future_value(
        scenario.current_corpus,
        scenario.monthly_contribution,
        scenario.annual_return_percent,
        scenario.years,
    )
    improved = future_value(
        scenario.current_corpus,
        scenario.improved_contribution,
        scenario.annual_return_percent,
        scenario.years,
    )

    eta = None
    if scenario.goal_amount > 0:
        eta = goal_eta_months(
            scenario.current_corpus,
            scenario.improved_contribution,
            scenario.annual_return_percent,
            scenario.goal_amount,
            max_months,
        )

    return WhatIfResult(
        base_projection=base,
        improved_projection=improved,
        delta=improved - base,
        goal_eta_months=eta,
    )
