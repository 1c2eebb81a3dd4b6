"""
Data Models Package

This package contains all Pydantic models used in finledger.
All data flowing through the engine must conform to these schemas.
"""

from finledger.models.alerts import (
    AlertDirection,
    AlertEvaluationSummary,
    AlertStatus,
    PriceAlert,
    Quote,
)
from finledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finledger.models.base import utc_now
from finledger.models.ledger import (
    EntryType,
    Holding,
    Investment,
    LedgerEntry,
)
from finledger.models.notification import Notification, NotificationKind
from finledger.models.planning import (
    CashTransaction,
    CashTransactionType,
    Goal,
    GoalProjection,
    GoalStatus,
    ProjectionReport,
    ProjectionStatus,
    WhatIfResult,
    WhatIfScenario,
)
from finledger.models.schedule import (
    SIP,
    Cadence,
    Committee,
    CommitteeInstallment,
    ReminderResult,
    ReminderStage,
    SIPFrequency,
    SIPStatus,
    SIPSyncResult,
    Subscription,
)
from finledger.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Ledger models
    "EntryType",
    "Holding",
    "Investment",
    "LedgerEntry",
    # Schedule models
    "Cadence",
    "Committee",
    "CommitteeInstallment",
    "ReminderResult",
    "ReminderStage",
    "SIP",
    "SIPFrequency",
    "SIPStatus",
    "SIPSyncResult",
    "Subscription",
    # Alert models
    "AlertDirection",
    "AlertEvaluationSummary",
    "AlertStatus",
    "PriceAlert",
    "Quote",
    # Planning models
    "CashTransaction",
    "CashTransactionType",
    "Goal",
    "GoalProjection",
    "GoalStatus",
    "ProjectionReport",
    "ProjectionStatus",
    "WhatIfResult",
    "WhatIfScenario",
    # Notifications
    "Notification",
    "NotificationKind",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    "utc_now",
]
