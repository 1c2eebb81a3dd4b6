"""
Tests for price alert evaluation.
"""

from datetime import timedelta

import pytest

from finledger.alerts import PriceAlertEvaluator, apply_quote
from finledger.models import (
    AlertDirection,
    AlertStatus,
    AuditEventType,
    NotificationKind,
    PriceAlert,
    Quote,
)
from tests.conftest import USER, FailingDispatcher, FakeQuoteProvider, utc

T0 = utc(2024, 3, 15, 9, 15)


def alert(symbol="INFY.NS", direction=AlertDirection.ABOVE, target=1500.0, **kwargs) -> PriceAlert:
    return PriceAlert(
        user_id=USER,
        symbol=symbol,
        direction=direction,
        target_price=target,
        **kwargs,
    )


class TestApplyQuote:

    def test_above_matches_at_target(self):
        updated, triggered = apply_quote(alert(), Quote(symbol="INFY.NS", price=1500.0), T0)
        assert triggered
        assert updated.status == AlertStatus.TRIGGERED
        assert updated.triggered_at == T0
        assert updated.last_notified_at == T0
        assert updated.last_checked_at == T0

    def test_below_direction(self):
        below = alert(direction=AlertDirection.BELOW, target=1400.0)
        _, triggered = apply_quote(below, Quote(symbol="INFY.NS", price=1450.0), T0)
        assert not triggered
        _, triggered = apply_quote(below, Quote(symbol="INFY.NS", price=1399.5), T0)
        assert triggered

    def test_no_match_only_touches_last_checked(self):
        original = alert()
        updated, triggered = apply_quote(original, Quote(symbol="INFY.NS", price=1499.0), T0)
        assert not triggered
        assert updated.last_checked_at == T0
        assert updated.last_notified_at is None
        assert updated.status == AlertStatus.ACTIVE
        assert original.last_checked_at is None

    def test_recurring_alert_respects_cooldown(self):
        recurring = alert(notify_once=False, cooldown_minutes=60, last_notified_at=T0)
        quote = Quote(symbol="INFY.NS", price=1600.0)

        updated, triggered = apply_quote(recurring, quote, T0 + timedelta(minutes=30))
        assert not triggered
        assert updated.last_notified_at == T0

        updated, triggered = apply_quote(recurring, quote, T0 + timedelta(minutes=61))
        assert triggered
        assert updated.status == AlertStatus.ACTIVE
        assert updated.last_notified_at == T0 + timedelta(minutes=61)


class TestPriceAlertEvaluator:

    async def _seed(self, store, *alerts):
        for a in alerts:
            await store.save_alert(a)

    async def test_notify_once_alert_is_excluded_after_trigger(self, store, dispatcher, audit_logger):
        once = alert()
        await self._seed(store, once)
        evaluator = PriceAlertEvaluator(
            store, FakeQuoteProvider({"INFY.NS": 1510.0}), dispatcher, audit_logger
        )

        first = await evaluator.evaluate_all(T0)
        second = await evaluator.evaluate_all(T0 + timedelta(hours=2))

        assert first.triggered == 1
        assert second.checked == 0
        assert (await store.get_alert(USER, once.id)).status == AlertStatus.TRIGGERED

        notifications = await store.list_notifications(USER)
        assert len(notifications) == 1
        assert notifications[0].kind == NotificationKind.INVESTMENT_ALERT
        assert notifications[0].metadata == {
            "symbol": "INFY.NS",
            "current": 1510.0,
            "target": 1500.0,
            "direction": "above",
        }

    async def test_missing_quote_leaves_alert_untouched(self, store, dispatcher, audit_logger):
        unpriced = alert(symbol="DELISTED.NS")
        await self._seed(store, unpriced)
        evaluator = PriceAlertEvaluator(store, FakeQuoteProvider(), dispatcher, audit_logger)

        summary = await evaluator.evaluate_all(T0)

        assert summary.checked == 1
        assert summary.skipped_no_quote == 1
        assert await store.get_alert(USER, unpriced.id) == unpriced

    async def test_symbols_are_quoted_once(self, store, dispatcher, audit_logger):
        await self._seed(
            store,
            alert(target=1500.0),
            alert(target=2000.0),
            alert(symbol="TCS.NS", target=4000.0),
        )
        quotes = FakeQuoteProvider({"INFY.NS": 1510.0, "TCS.NS": 3900.0})
        evaluator = PriceAlertEvaluator(store, quotes, dispatcher, audit_logger)

        summary = await evaluator.evaluate_all(T0)

        assert quotes.requests == [["INFY.NS", "TCS.NS"]]
        assert summary.checked == 3
        assert summary.triggered == 1

    async def test_dispatch_failure_still_records_trigger(self, store, audit_logger):
        once = alert()
        await self._seed(store, once)
        failing = FailingDispatcher()
        evaluator = PriceAlertEvaluator(
            store, FakeQuoteProvider({"INFY.NS": 1510.0}), failing, audit_logger
        )

        summary = await evaluator.evaluate_all(T0)

        assert summary.triggered == 1
        assert summary.dispatch_failures == 1
        assert failing.attempts == 1
        stored = await store.get_alert(USER, once.id)
        assert stored.status == AlertStatus.TRIGGERED
        assert stored.triggered_at == T0

    async def test_cooldown_across_batches(self, store, dispatcher, audit_logger):
        recurring = alert(notify_once=False, cooldown_minutes=60)
        await self._seed(store, recurring)
        evaluator = PriceAlertEvaluator(
            store, FakeQuoteProvider({"INFY.NS": 1600.0}), dispatcher, audit_logger
        )

        assert (await evaluator.evaluate_all(T0)).triggered == 1
        assert (await evaluator.evaluate_all(T0 + timedelta(minutes=30))).triggered == 0
        assert (await evaluator.evaluate_all(T0 + timedelta(minutes=61))).triggered == 1

        stored = await store.get_alert(USER, recurring.id)
        assert stored.status == AlertStatus.ACTIVE
        assert len(store.notifications) == 2

    async def test_provider_outage_changes_nothing(self, store, dispatcher, audit_logger):
        waiting = alert()
        await self._seed(store, waiting)
        evaluator = PriceAlertEvaluator(
            store, FakeQuoteProvider(fail=True), dispatcher, audit_logger
        )

        summary = await evaluator.evaluate_all(T0)

        assert summary.skipped_no_quote == 1
        assert await store.get_alert(USER, waiting.id) == waiting
        assert any(e.event_type == AuditEventType.EXTERNAL_SERVICE_ERROR for e in store.events)

    async def test_no_active_alerts(self, store, dispatcher, audit_logger):
        quotes = FakeQuoteProvider()
        evaluator = PriceAlertEvaluator(store, quotes, dispatcher, audit_logger)

        summary = await evaluator.evaluate_all(T0)

        assert summary.checked == 0
        assert quotes.requests == []
