"""
Obligation Scheduler

User-driven actions on subscriptions and committees. Due dates only move
forward through rollforward(); committee schedules are written once, at
creation, and never regenerated.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog

from finledger.audit import AuditLogger
from finledger.config import get_settings
from finledger.models.audit import AuditEventType
from finledger.models.schedule import (
    Cadence,
    Committee,
    CommitteeInstallment,
    Subscription,
)
from finledger.scheduler.cadence import normalize_cadence, rollforward
from finledger.services.storage.interface import (
    NotFoundError,
    ObligationStorageInterface,
)

logger = structlog.get_logger(__name__)


class ObligationScheduler:

    def __init__(
        self,
        storage: ObligationStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        max_iterations: Optional[int] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._max_iterations = (
            get_settings().app.rollforward_max_iterations
            if max_iterations is None
            else max_iterations
        )

    async def _require_subscription(self, user_id: str, subscription_id: UUID) -> Subscription:
        subscription = await self._storage.get_subscription(user_id, subscription_id)
        if subscription is None:
            raise NotFoundError(f"Subscription not found: {subscription_id}")
        return subscription

    async def _advance(self, subscription: Subscription, now: datetime) -> None:
        """Roll a repeating subscription past now, or retire a one-time one."""
        cadence = normalize_cadence(subscription.cadence)
        if cadence == Cadence.ONE_TIME:
            subscription.active = False
            return

        anchor = subscription.next_due_date
        next_due = rollforward(anchor, cadence, now, self._max_iterations)
        if next_due <= now.date():
            await self._audit.log_rollforward_capped(
                anchor=anchor,
                cadence=cadence.value,
                result=next_due,
                iterations=self._max_iterations,
            )
        subscription.next_due_date = next_due
        subscription.active = True

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    async def mark_paid(
        self,
        user_id: str,
        subscription_id: UUID,
        now: datetime,
    ) -> Subscription:
        """
        Record a payment.

        Repeating subscriptions roll to their next due date and stay active;
        a one-time subscription keeps its due date and becomes inactive.
        """
        subscription = await self._require_subscription(user_id, subscription_id)
        subscription.paid = True
        subscription.paid_date = now
        await self._advance(subscription, now)

        await self._storage.update_subscription(subscription)
        await self._audit.log_obligation_payment(
            event_type=AuditEventType.OBLIGATION_PAID,
            entity_type="subscription",
            entity_id=subscription.id,
            due_date=subscription.next_due_date,
        )
        return subscription

    async def unmark_paid(
        self,
        user_id: str,
        subscription_id: UUID,
    ) -> Subscription:
        """Clear the payment stamp. The due date is not moved back."""
        subscription = await self._require_subscription(user_id, subscription_id)
        subscription.paid = False
        subscription.paid_date = None

        await self._storage.update_subscription(subscription)
        await self._audit.log_obligation_payment(
            event_type=AuditEventType.OBLIGATION_UNPAID,
            entity_type="subscription",
            entity_id=subscription.id,
            due_date=subscription.next_due_date,
        )
        return subscription

    async def skip(
        self,
        user_id: str,
        subscription_id: UUID,
        now: datetime,
    ) -> Subscription:
        """Move past the current period without recording a payment."""
        subscription = await self._require_subscription(user_id, subscription_id)
        await self._advance(subscription, now)

        await self._storage.update_subscription(subscription)
        await self._audit.log_obligation_payment(
            event_type=AuditEventType.OBLIGATION_SKIPPED,
            entity_type="subscription",
            entity_id=subscription.id,
            due_date=subscription.next_due_date,
        )
        return subscription

    async def pause(self, user_id: str, subscription_id: UUID) -> Subscription:
        return await self._set_active(user_id, subscription_id, False)

    async def resume(self, user_id: str, subscription_id: UUID) -> Subscription:
        return await self._set_active(user_id, subscription_id, True)

    async def _set_active(
        self,
        user_id: str,
        subscription_id: UUID,
        active: bool,
    ) -> Subscription:
        subscription = await self._require_subscription(user_id, subscription_id)
        subscription.active = active
        await self._storage.update_subscription(subscription)
        logger.info(
            "subscription_resumed" if active else "subscription_paused",
            subscription_id=str(subscription_id),
        )
        return subscription

    # -------------------------------------------------------------------------
    # Committees
    # -------------------------------------------------------------------------

    async def create_committee(self, committee: Committee) -> list[CommitteeInstallment]:
        """
        Persist a committee with its full installment schedule.

        Exactly `duration` installments are created, numbered from 1, each
        for the committee's installment amount.
        """
        installments = [
            CommitteeInstallment(
                committee_id=committee.id,
                user_id=committee.user_id,
                month=month,
                amount=committee.installment_amount,
            )
            for month in range(1, committee.duration + 1)
        ]
        await self._storage.create_committee(committee, installments)
        await self._audit.log_committee_created(
            committee_id=committee.id,
            installment_count=len(installments),
        )
        return installments

    async def update_committee(self, committee: Committee) -> Committee:
        """Update committee details. The installment schedule is left as-is."""
        existing = await self._storage.get_committee(committee.user_id, committee.id)
        if existing is None:
            raise NotFoundError(f"Committee not found: {committee.id}")

        if committee.duration != existing.duration:
            logger.info(
                "committee_duration_changed",
                committee_id=str(committee.id),
                old=existing.duration,
                new=committee.duration,
            )
        await self._storage.update_committee(committee)
        return committee

    async def set_installment_paid(
        self,
        user_id: str,
        committee_id: UUID,
        installment_id: UUID,
        paid: bool,
        now: datetime,
        amount: Optional[float] = None,
    ) -> CommitteeInstallment:
        installments = await self._storage.list_installments(user_id, committee_id)
        installment = next((i for i in installments if i.id == installment_id), None)
        if installment is None:
            raise NotFoundError(f"Installment not found: {installment_id}")

        installment.paid = paid
        installment.paid_date = now if paid else None
        if amount is not None:
            installment.amount = amount

        await self._storage.update_installment(installment)
        await self._audit.log_installment_updated(
            installment_id=installment.id,
            month=installment.month,
            paid=paid,
        )
        return installment
