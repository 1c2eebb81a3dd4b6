"""
Scheduled obligation jobs.

Both jobs run to completion per invocation and are safe to re-run:
reminders are deduplicated per (subscription, due date, stage) and a SIP
installment is posted at most once per period.
"""

from datetime import date, datetime, timedelta
from typing import Optional

import structlog

from finledger.audit import AuditLogger, create_correlation_id
from finledger.config import get_settings
from finledger.models.notification import NotificationKind
from finledger.models.schedule import (
    ReminderResult,
    ReminderStage,
    SIPStatus,
    SIPSyncResult,
    Subscription,
)
from finledger.scheduler.cadence import is_sip_due, reminder_stage
from finledger.services.notifications.interface import NotificationDispatcherInterface
from finledger.services.quotes.interface import QuoteProviderError, QuoteProviderInterface
from finledger.services.storage.interface import ObligationStorageInterface

logger = structlog.get_logger(__name__)


def _reminder_text(subscription: Subscription, stage: ReminderStage, days_until: int) -> tuple[str, str]:
    name = subscription.display_name
    account = subscription.payment_method_label or "your selected account"
    amount = f"{subscription.currency} {subscription.amount:.2f}"
    due_key = subscription.next_due_date.isoformat()

    if stage == ReminderStage.DUE_TODAY:
        return (
            f"Subscription due today: {name}",
            f"{name} ({amount}) is due today on {account}.",
        )
    if stage == ReminderStage.DUE_SOON:
        return (
            f"Subscription due soon: {name}",
            f"{name} ({amount}) is due in {days_until} day(s) on {account}.",
        )
    return (
        f"Subscription overdue: {name}",
        f"{name} ({amount}) is overdue from {due_key}. Please review payment on {account}.",
    )


class SubscriptionReminderJob:
    """Sends due-soon, due-today and overdue reminders for subscriptions."""

    def __init__(
        self,
        storage: ObligationStorageInterface,
        dispatcher: NotificationDispatcherInterface,
        audit_logger: Optional[AuditLogger] = None,
        window_days: Optional[int] = None,
    ):
        self._storage = storage
        self._dispatcher = dispatcher
        self._audit = audit_logger or AuditLogger()
        self._window = timedelta(
            days=get_settings().app.reminder_window_days if window_days is None else window_days
        )

    async def run(self, today: date) -> ReminderResult:
        correlation_id = create_correlation_id()
        result = ReminderResult()

        subscriptions = await self._storage.list_subscriptions_due(today + self._window)

        for subscription in subscriptions:
            result.checked += 1
            due = subscription.next_due_date
            stage = reminder_stage(due, today, subscription.remind_days_before)
            if stage is None:
                continue

            dedupe_key = f"{subscription.id}:{due.isoformat()}:{stage.value}"
            if await self._dispatcher.already_sent(
                subscription.user_id, NotificationKind.BILL_REMINDER, dedupe_key
            ):
                continue

            title, message = _reminder_text(subscription, stage, (due - today).days)
            try:
                await self._dispatcher.dispatch(
                    user_id=subscription.user_id,
                    title=title,
                    message=message,
                    kind=NotificationKind.BILL_REMINDER,
                    metadata={
                        "source": "subscription_reminder",
                        "subscription_id": str(subscription.id),
                        "due_date": due.isoformat(),
                        "stage": stage.value,
                        "cadence": subscription.cadence.value,
                    },
                    dedupe_key=dedupe_key,
                )
            except Exception as e:
                result.dispatch_failures += 1
                logger.warning(
                    "reminder_dispatch_failed",
                    subscription_id=str(subscription.id),
                    error=str(e),
                )
                await self._audit.log_notification_failed(
                    entity_type="subscription",
                    entity_id=subscription.id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
                continue

            result.notified += 1
            await self._audit.log_reminder_sent(
                subscription_id=subscription.id,
                stage=stage.value,
                due_date=due,
                correlation_id=correlation_id,
            )

        await self._audit.log_batch_completed(
            job="remind-subscriptions",
            summary=result.model_dump(),
            correlation_id=correlation_id,
        )
        return result


class SIPSyncJob:
    """
    Refreshes SIP valuations from market prices and posts due installments.

    SIPs without a symbol, or whose symbol has no positive quote, are left
    untouched.
    """

    def __init__(
        self,
        storage: ObligationStorageInterface,
        quotes: QuoteProviderInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._quotes = quotes
        self._audit = audit_logger or AuditLogger()

    async def run(self, user_id: str, now: datetime) -> SIPSyncResult:
        correlation_id = create_correlation_id()
        today = now.date()

        sips = [s for s in await self._storage.list_sips(user_id) if s.symbol]
        result = SIPSyncResult(total=len(sips))

        symbols = sorted({s.symbol.upper() for s in sips})
        quotes = {}
        if symbols:
            try:
                quotes = await self._quotes.get_quotes(symbols)
            except QuoteProviderError as e:
                await self._audit.log_external_service_error(
                    service="quotes",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )

        for sip in sips:
            quote = quotes.get(sip.symbol.upper())
            if quote is None or quote.price <= 0:
                continue

            due = (
                sip.status == SIPStatus.ACTIVE
                and (sip.end_date is None or today <= sip.end_date)
                and is_sip_due(sip.frequency, sip.sip_date, sip.start_date, sip.last_debit_date, today)
            )
            added_units = sip.amount / quote.price if due else 0.0

            sip.units += added_units
            sip.current_value = sip.units * quote.price
            sip.last_price = quote.price
            sip.last_updated = now
            if due:
                sip.total_invested += sip.amount
                sip.last_debit_date = today

            await self._storage.update_sip(sip)
            result.price_updated += 1

            if due:
                result.installments_posted += 1
                await self._audit.log_sip_installment_posted(
                    sip_id=sip.id,
                    amount=sip.amount,
                    units=added_units,
                    price=quote.price,
                    correlation_id=correlation_id,
                )

        logger.info("sip_sync_completed", user_id=user_id, **result.model_dump())
        await self._audit.log_batch_completed(
            job="sync-sips",
            summary=result.model_dump(),
            correlation_id=correlation_id,
        )
        return result
