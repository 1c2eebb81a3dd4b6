"""Recurring-obligation scheduler: cadence math, payment actions and jobs."""

from finledger.scheduler.cadence import (
    InvalidCadenceError,
    is_sip_due,
    normalize_cadence,
    reminder_stage,
    rollforward,
    shift,
)
from finledger.scheduler.jobs import SIPSyncJob, SubscriptionReminderJob
from finledger.scheduler.service import ObligationScheduler

__all__ = [
    "InvalidCadenceError",
    "ObligationScheduler",
    "SIPSyncJob",
    "SubscriptionReminderJob",
    "is_sip_due",
    "normalize_cadence",
    "reminder_stage",
    "rollforward",
    "shift",
]
