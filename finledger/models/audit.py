"""
Audit Models for finledger

Every state change made by the engine is logged for audit purposes:
ledger writes, holding recomputes, obligation payments, alert triggers.
This makes it possible to reconstruct why a holding or due date has
the value it has.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json

from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finledger.models.base import UTCDateTime, utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger
    LEDGER_ENTRY_RECORDED = "ledger_entry_recorded"
    LEDGER_ENTRY_DELETED = "ledger_entry_deleted"
    LEDGER_VALIDATION_FAILED = "ledger_validation_failed"
    HOLDING_RECOMPUTED = "holding_recomputed"

    # Obligations
    OBLIGATION_PAID = "obligation_paid"
    OBLIGATION_UNPAID = "obligation_unpaid"
    OBLIGATION_SKIPPED = "obligation_skipped"
    ROLLFORWARD_CAPPED = "rollforward_capped"
    COMMITTEE_CREATED = "committee_created"
    INSTALLMENT_UPDATED = "installment_updated"
    SIP_INSTALLMENT_POSTED = "sip_installment_posted"
    REMINDER_SENT = "reminder_sent"

    # Alerts
    ALERT_TRIGGERED = "alert_triggered"
    NOTIFICATION_FAILED = "notification_failed"

    # Batches
    BATCH_COMPLETED = "batch_completed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: UTCDateTime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'investment', 'subscription', 'price_alert')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one batch run)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.holding_recomputed(investment_id, 10.0, 105.5, 14)
        event = AuditEventBuilder.alert_triggered(alert_id, "INFY.NS", 1510.0, 1500.0, True)
    """

    @staticmethod
    def ledger_entry_recorded(
        entry_id: UUID,
        investment_id: UUID,
        entry_type: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_ENTRY_RECORDED,
            entity_type="ledger_entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Ledger entry recorded: {entry_type} {amount:.2f}",
            details={
                "investment_id": str(investment_id),
                "type": entry_type,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def ledger_entry_deleted(
        entry_id: UUID,
        investment_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_ENTRY_DELETED,
            entity_type="ledger_entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description="Ledger entry deleted",
            details={"investment_id": str(investment_id)},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        entry_id: UUID,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger_entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Ledger entry rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def holding_recomputed(
        investment_id: UUID,
        quantity: float,
        avg_buy_price: float,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HOLDING_RECOMPUTED,
            entity_type="investment",
            entity_id=investment_id,
            correlation_id=correlation_id,
            description=f"Holding recomputed from {entry_count} entries",
            details={
                "quantity": quantity,
                "avg_buy_price": avg_buy_price,
                "entry_count": entry_count,
            },
        )

    @staticmethod
    def obligation_payment(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: UUID,
        due_date: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} {event_type.value.split('_')[-1]}",
            details={"next_due_date": due_date},
            is_user_action=True,
        )

    @staticmethod
    def rollforward_capped(
        anchor: str,
        cadence: str,
        result: str,
        iterations: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROLLFORWARD_CAPPED,
            severity=AuditSeverity.WARNING,
            entity_type="due_date",
            description=f"Rollforward stopped after {iterations} shifts, still overdue",
            details={
                "anchor": anchor,
                "cadence": cadence,
                "result": result,
            },
        )

    @staticmethod
    def committee_created(
        committee_id: UUID,
        installment_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMITTEE_CREATED,
            entity_type="committee",
            entity_id=committee_id,
            correlation_id=correlation_id,
            description=f"Committee created with {installment_count} installments",
            details={"installment_count": installment_count},
            is_user_action=True,
        )

    @staticmethod
    def installment_updated(
        installment_id: UUID,
        month: int,
        paid: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSTALLMENT_UPDATED,
            entity_type="committee_installment",
            entity_id=installment_id,
            correlation_id=correlation_id,
            description=f"Installment {month} marked {'paid' if paid else 'unpaid'}",
            details={"month": month, "paid": paid},
            is_user_action=True,
        )

    @staticmethod
    def sip_installment_posted(
        sip_id: UUID,
        amount: float,
        units: float,
        price: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIP_INSTALLMENT_POSTED,
            entity_type="sip",
            entity_id=sip_id,
            correlation_id=correlation_id,
            description=f"SIP installment of {amount:.2f} posted at {price:.2f}",
            details={"amount": amount, "units": units, "price": price},
        )

    @staticmethod
    def reminder_sent(
        subscription_id: UUID,
        stage: str,
        due_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMINDER_SENT,
            entity_type="subscription",
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description=f"Subscription reminder sent: {stage}",
            details={"stage": stage, "due_date": due_date},
        )

    @staticmethod
    def alert_triggered(
        alert_id: UUID,
        symbol: str,
        price: float,
        target: float,
        terminal: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALERT_TRIGGERED,
            entity_type="price_alert",
            entity_id=alert_id,
            correlation_id=correlation_id,
            description=f"Price alert triggered: {symbol} at {price:.2f}",
            details={
                "symbol": symbol,
                "price": price,
                "target": target,
                "terminal": terminal,
            },
        )

    @staticmethod
    def notification_failed(
        entity_type: str,
        entity_id: UUID,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description="Notification dispatch failed",
            error_message=error_message,
        )

    @staticmethod
    def batch_completed(
        job: str,
        summary: dict,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BATCH_COMPLETED,
            correlation_id=correlation_id,
            description=f"Batch job completed: {job}",
            details={"job": job, **summary},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
