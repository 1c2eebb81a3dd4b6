"""
Audit Logger

DESIGN DECISION: Every change to money-bearing state is logged.
This provides:
1. Complete traceability of holdings and due dates
2. Debugging capability for batch jobs
3. A history the user can read back

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finledger.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from finledger.services.storage.interface import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit store (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    # -------------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------------

    async def log_entry_recorded(
        self,
        entry_id: UUID,
        investment_id: UUID,
        entry_type: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.ledger_entry_recorded(
            entry_id=entry_id,
            investment_id=investment_id,
            entry_type=entry_type,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_entry_deleted(
        self,
        entry_id: UUID,
        investment_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.ledger_entry_deleted(
            entry_id=entry_id,
            investment_id=investment_id,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        entry_id: UUID,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a ledger entry rejected at the boundary."""
        await self.log(AuditEventBuilder.validation_failed(
            entry_id=entry_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_holding_recomputed(
        self,
        investment_id: UUID,
        quantity: float,
        avg_buy_price: float,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.holding_recomputed(
            investment_id=investment_id,
            quantity=quantity,
            avg_buy_price=avg_buy_price,
            entry_count=entry_count,
            correlation_id=correlation_id,
        ))

    # -------------------------------------------------------------------------
    # Obligations
    # -------------------------------------------------------------------------

    async def log_obligation_payment(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: UUID,
        due_date: Optional[date],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a paid/unpaid/skipped action on a subscription."""
        await self.log(AuditEventBuilder.obligation_payment(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            due_date=due_date.isoformat() if due_date else None,
            correlation_id=correlation_id,
        ))

    async def log_rollforward_capped(
        self,
        anchor: date,
        cadence: str,
        result: date,
        iterations: int,
    ) -> None:
        await self.log(AuditEventBuilder.rollforward_capped(
            anchor=anchor.isoformat(),
            cadence=cadence,
            result=result.isoformat(),
            iterations=iterations,
        ))

    async def log_committee_created(
        self,
        committee_id: UUID,
        installment_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.committee_created(
            committee_id=committee_id,
            installment_count=installment_count,
            correlation_id=correlation_id,
        ))

    async def log_installment_updated(
        self,
        installment_id: UUID,
        month: int,
        paid: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.installment_updated(
            installment_id=installment_id,
            month=month,
            paid=paid,
            correlation_id=correlation_id,
        ))

    async def log_sip_installment_posted(
        self,
        sip_id: UUID,
        amount: float,
        units: float,
        price: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.sip_installment_posted(
            sip_id=sip_id,
            amount=amount,
            units=units,
            price=price,
            correlation_id=correlation_id,
        ))

    async def log_reminder_sent(
        self,
        subscription_id: UUID,
        stage: str,
        due_date: date,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.reminder_sent(
            subscription_id=subscription_id,
            stage=stage,
            due_date=due_date.isoformat(),
            correlation_id=correlation_id,
        ))

    # -------------------------------------------------------------------------
    # Alerts and batches
    # -------------------------------------------------------------------------

    async def log_alert_triggered(
        self,
        alert_id: UUID,
        symbol: str,
        price: float,
        target: float,
        terminal: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.alert_triggered(
            alert_id=alert_id,
            symbol=symbol,
            price=price,
            target=target,
            terminal=terminal,
            correlation_id=correlation_id,
        ))

    async def log_notification_failed(
        self,
        entity_type: str,
        entity_id: UUID,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.notification_failed(
            entity_type=entity_type,
            entity_id=entity_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_batch_completed(
        self,
        job: str,
        summary: dict,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log the summary of a scheduled job run."""
        await self.log(AuditEventBuilder.batch_completed(
            job=job,
            summary=summary,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a batch run or a user action.
    Pass it through all subsequent operations.
    """
    return uuid4()
