"""
Price Alert Evaluator

Batch contract:
- Only alerts with status=active are loaded
- Each distinct symbol is quoted once per batch
- An alert whose symbol has no quote is left completely untouched
- A notification failure never prevents the trigger from being recorded
- Storage failures abort the batch
"""

from datetime import datetime
from typing import Optional

import structlog

from finledger.audit import AuditLogger, create_correlation_id
from finledger.models.alerts import (
    AlertDirection,
    AlertEvaluationSummary,
    AlertStatus,
    PriceAlert,
    Quote,
)
from finledger.models.notification import NotificationKind
from finledger.services.notifications.interface import NotificationDispatcherInterface
from finledger.services.quotes.interface import QuoteProviderError, QuoteProviderInterface
from finledger.services.storage.interface import AlertStorageInterface

logger = structlog.get_logger(__name__)


def is_matched(alert: PriceAlert, price: float) -> bool:
    if alert.direction == AlertDirection.ABOVE:
        return price >= alert.target_price
    return price <= alert.target_price


def in_cooldown(alert: PriceAlert, now: datetime) -> bool:
    if alert.last_notified_at is None:
        return False
    return now - alert.last_notified_at < alert.cooldown


def apply_quote(
    alert: PriceAlert,
    quote: Quote,
    now: datetime,
) -> tuple[PriceAlert, bool]:
    """
    Compute the alert's next state for one quote.

    Returns the updated copy and whether it triggered. The input alert is
    not modified.
    """
    if not is_matched(alert, quote.price) or in_cooldown(alert, now):
        return alert.model_copy(update={"last_checked_at": now}), False

    updated = alert.model_copy(update={
        "status": AlertStatus.TRIGGERED if alert.notify_once else AlertStatus.ACTIVE,
        "triggered_at": now,
        "last_checked_at": now,
        "last_notified_at": now,
    })
    return updated, True


class PriceAlertEvaluator:

    def __init__(
        self,
        storage: AlertStorageInterface,
        quotes: QuoteProviderInterface,
        dispatcher: NotificationDispatcherInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._quotes = quotes
        self._dispatcher = dispatcher
        self._audit = audit_logger or AuditLogger()

    async def evaluate_all(self, now: datetime) -> AlertEvaluationSummary:
        correlation_id = create_correlation_id()
        alerts = await self._storage.list_active_alerts()
        summary = AlertEvaluationSummary(checked=len(alerts))

        if not alerts:
            return summary

        symbols = list(dict.fromkeys(a.symbol for a in alerts))
        try:
            quotes = await self._quotes.get_quotes(symbols)
        except QuoteProviderError as e:
            # No prices this round, so no alert changes either
            await self._audit.log_external_service_error(
                service="quotes",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            quotes = {}

        for alert in alerts:
            quote = quotes.get(alert.symbol)
            if quote is None:
                summary.skipped_no_quote += 1
                continue

            updated, triggered = apply_quote(alert, quote, now)

            if triggered:
                summary.triggered += 1
                if not await self._notify(updated, quote, correlation_id):
                    summary.dispatch_failures += 1

            await self._storage.update_alert(updated)

            if triggered:
                await self._audit.log_alert_triggered(
                    alert_id=alert.id,
                    symbol=alert.symbol,
                    price=quote.price,
                    target=alert.target_price,
                    terminal=updated.status == AlertStatus.TRIGGERED,
                    correlation_id=correlation_id,
                )

        await self._audit.log_batch_completed(
            job="evaluate-alerts",
            summary=summary.model_dump(),
            correlation_id=correlation_id,
        )
        return summary

    async def _notify(self, alert: PriceAlert, quote: Quote, correlation_id) -> bool:
        """Dispatch the trigger notification. Returns False if it failed."""
        relation = "above" if alert.direction == AlertDirection.ABOVE else "below"
        try:
            await self._dispatcher.dispatch(
                user_id=alert.user_id,
                title=f"Price alert triggered: {alert.symbol}",
                message=(
                    f"{alert.symbol} is at {quote.price:.2f}, {relation} your "
                    f"target {alert.target_price:.2f}."
                ),
                kind=NotificationKind.INVESTMENT_ALERT,
                metadata={
                    "symbol": alert.symbol,
                    "current": quote.price,
                    "target": alert.target_price,
                    "direction": alert.direction.value,
                },
            )
            return True
        except Exception as e:
            logger.warning("alert_dispatch_failed", alert_id=str(alert.id), error=str(e))
            await self._audit.log_notification_failed(
                entity_type="price_alert",
                entity_id=alert.id,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return False
