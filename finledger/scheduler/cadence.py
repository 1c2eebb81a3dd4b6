"""
Cadence arithmetic for recurring obligations.

Everything here is pure date math on calendar dates. Month and year steps
use dateutil's relativedelta, which clamps to the last day of shorter
months (Jan 31 + 1 month = Feb 29 in a leap year).
"""

import calendar
from datetime import date, datetime
from typing import Optional, Union

import structlog
from dateutil.relativedelta import relativedelta

from finledger.models.schedule import Cadence, ReminderStage, SIPFrequency

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 24


class InvalidCadenceError(ValueError):
    """A cadence string that is not monthly, yearly or one_time."""
    pass


def normalize_cadence(value: Union[str, Cadence]) -> Cadence:
    """Parse a cadence case- and whitespace-insensitively."""
    if isinstance(value, Cadence):
        return value
    try:
        return Cadence(str(value or "").strip().lower())
    except ValueError:
        raise InvalidCadenceError(f"Invalid cadence: {value!r}")


def _step(cadence: Cadence, periods: int) -> relativedelta:
    if cadence == Cadence.MONTHLY:
        return relativedelta(months=periods)
    if cadence == Cadence.YEARLY:
        return relativedelta(years=periods)
    return relativedelta()


def shift(due: date, cadence: Union[str, Cadence]) -> date:
    """Advance a due date by exactly one period. one_time never moves."""
    return due + _step(normalize_cadence(cadence), 1)


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def rollforward(
    current_due: date,
    cadence: Union[str, Cadence],
    now: Union[date, datetime],
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> date:
    """
    First due date strictly after `now`.

    Always advances at least one period. Each candidate is computed from
    the original due date (anchor + k periods), so a due date on the 31st
    returns to the 31st after passing through shorter months.

    At most `max_iterations` periods are applied. If the result is still
    not after `now`, it is returned anyway and a warning is logged.
    """
    cadence = normalize_cadence(cadence)
    if cadence == Cadence.ONE_TIME:
        return current_due

    today = _as_date(now)
    candidate = current_due
    for periods in range(1, max_iterations + 1):
        candidate = current_due + _step(cadence, periods)
        if candidate > today:
            return candidate

    logger.warning(
        "rollforward_capped",
        anchor=current_due.isoformat(),
        cadence=cadence.value,
        result=candidate.isoformat(),
        now=today.isoformat(),
        iterations=max_iterations,
    )
    return candidate


def reminder_stage(
    due_date: date,
    today: date,
    remind_days_before: int,
) -> Optional[ReminderStage]:
    """Which reminder, if any, a subscription is due for today."""
    days_until = (due_date - today).days
    if days_until < 0:
        return ReminderStage.OVERDUE
    if days_until == 0:
        return ReminderStage.DUE_TODAY
    if days_until <= remind_days_before:
        return ReminderStage.DUE_SOON
    return None


def _month_diff(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def is_sip_due(
    frequency: Union[str, SIPFrequency],
    sip_date: int,
    start_date: date,
    last_debit_date: Optional[date],
    today: date,
) -> bool:
    """
    Whether a SIP installment should be debited today.

    Weekly plans debit every 7 days. Monthly and quarterly plans debit once
    per eligible month, on or after the SIP day (clamped to the month's
    length). Quarterly months are every third month counted from the start
    month.
    """
    frequency = SIPFrequency(frequency)
    if today < start_date:
        return False

    if frequency == SIPFrequency.WEEKLY:
        if last_debit_date is None:
            return True
        return (today - last_debit_date).days >= 7

    due_day = min(sip_date, calendar.monthrange(today.year, today.month)[1])
    if today.day < due_day:
        return False

    if frequency == SIPFrequency.QUARTERLY and _month_diff(start_date, today) % 3 != 0:
        return False

    if last_debit_date is None:
        return True
    return (last_debit_date.year, last_debit_date.month) != (today.year, today.month)
