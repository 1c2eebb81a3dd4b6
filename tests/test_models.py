"""
Tests for finledger models

Test strategy:
1. Unit tests for models and their construction-time checks
2. Engine tests live beside their engines (test_ledger, test_scheduler, ...)
3. No real API calls in tests
"""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from finledger.models import (
    SIP,
    AlertDirection,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Cadence,
    EntryType,
    Holding,
    LedgerEntry,
    PriceAlert,
    Quote,
    Subscription,
    ValidationIssue,
    ValidationResult,
    WhatIfScenario,
)


class TestLedgerModels:
    """Tests for ledger entries and holdings."""

    def test_entry_is_immutable(self):
        """Recorded entries cannot be edited in place."""
        entry = LedgerEntry(
            user_id="u",
            investment_id=uuid4(),
            type=EntryType.BUY,
            quantity=1,
            amount=100,
            date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        with pytest.raises(ValueError):
            entry.amount = 200

    def test_missing_fees_count_as_zero(self):
        entry = LedgerEntry(
            user_id="u",
            investment_id=uuid4(),
            type=EntryType.FEE,
            amount=10,
            fees=None,
            taxes=None,
            date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        assert entry.fees == 0
        assert entry.taxes == 0

    def test_naive_date_is_taken_as_utc(self):
        """Naive datetimes are stored as UTC."""
        entry = LedgerEntry(
            user_id="u",
            investment_id=uuid4(),
            type=EntryType.BUY,
            quantity=1,
            amount=100,
            date=datetime(2024, 1, 1, 10, 30),
        )
        assert entry.date.tzinfo == timezone.utc
        assert entry.date.hour == 10

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            LedgerEntry(
                user_id="u",
                investment_id=uuid4(),
                type=EntryType.BUY,
                amount=-1,
                date=datetime(2024, 1, 1),
            )

    def test_holding_average_price(self):
        holding = Holding(quantity=4, cost_basis=500)
        assert holding.avg_buy_price == 125
        assert holding.model_dump()["avg_buy_price"] == 125

    def test_flat_holding_has_zero_average(self):
        assert Holding().avg_buy_price == 0


class TestObligationModels:
    """Tests for subscriptions and SIPs."""

    def test_subscription_display_name_prefers_merchant(self):
        sub = Subscription(
            user_id="u",
            name="Streaming",
            merchant="Netflix",
            amount=649,
            cadence=Cadence.MONTHLY,
            next_due_date=date(2024, 3, 1),
        )
        assert sub.display_name == "Netflix"
        assert sub.model_copy(update={"merchant": None}).display_name == "Streaming"

    def test_subscription_amount_must_be_positive(self):
        with pytest.raises(ValueError):
            Subscription(
                user_id="u",
                name="Free tier",
                amount=0,
                cadence=Cadence.MONTHLY,
                next_due_date=date(2024, 3, 1),
            )

    def test_sip_end_date_validation(self):
        """SIP end date cannot precede its start."""
        with pytest.raises(ValueError, match="SIP end date cannot be before start date"):
            SIP(
                user_id="u",
                name="Index fund",
                amount=5000,
                start_date=date(2024, 6, 1),
                end_date=date(2024, 1, 1),
            )


class TestAlertModels:
    """Tests for price alerts and quotes."""

    def test_symbol_is_normalized(self):
        alert = PriceAlert(
            user_id="u",
            symbol="  infy.ns ",
            direction=AlertDirection.ABOVE,
            target_price=1500,
        )
        assert alert.symbol == "INFY.NS"
        assert alert.cooldown.total_seconds() == 3600

    def test_target_price_must_be_positive(self):
        with pytest.raises(ValueError):
            PriceAlert(
                user_id="u",
                symbol="INFY.NS",
                direction=AlertDirection.BELOW,
                target_price=0,
            )

    def test_quote_change(self):
        assert Quote(symbol="A", price=105, previous_close=100).change == 5
        assert Quote(symbol="A", price=105).change is None


class TestPlanningModels:

    def test_improved_contribution_defaults_to_base(self):
        assert WhatIfScenario(monthly_contribution=1000).improved_contribution == 1000
        scenario = WhatIfScenario(monthly_contribution=1000, monthly_contribution_alt=1500)
        assert scenario.improved_contribution == 1500

    def test_years_must_be_positive(self):
        with pytest.raises(ValueError):
            WhatIfScenario(years=0)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.HOLDING_RECOMPUTED,
            description="Holding recomputed",
        )
        assert event.event_type == AuditEventType.HOLDING_RECOMPUTED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo == timezone.utc

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.ALERT_TRIGGERED,
            description="Alert triggered",
            details={"symbol": "INFY.NS", "price": 1510.0},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "alert_triggered"
        assert log_dict["details"]["symbol"] == "INFY.NS"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.OBLIGATION_PAID,
            description="Subscription paid",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11
        assert row[2] == "obligation_paid"
        assert row[8] == ""  # no details
        assert row[10] == "True"

    def test_builder_alert_triggered(self):
        alert_id = uuid4()
        correlation_id = uuid4()

        event = AuditEventBuilder.alert_triggered(
            alert_id=alert_id,
            symbol="INFY.NS",
            price=1510.0,
            target=1500.0,
            terminal=True,
            correlation_id=correlation_id,
        )

        assert event.entity_id == alert_id
        assert event.correlation_id == correlation_id
        assert event.details["terminal"] is True
        assert event.is_user_action is False

    def test_builder_obligation_payment(self):
        event = AuditEventBuilder.obligation_payment(
            AuditEventType.OBLIGATION_SKIPPED,
            entity_type="subscription",
            entity_id=uuid4(),
            due_date="2024-04-01",
        )
        assert event.description == "Subscription skipped"
        assert event.details == {"next_due_date": "2024-04-01"}
        assert event.is_user_action is True

    def test_builder_batch_completed_merges_summary(self):
        event = AuditEventBuilder.batch_completed("evaluate-alerts", {"checked": 3, "triggered": 1})
        assert event.details == {"job": "evaluate-alerts", "checked": 3, "triggered": 1}

    def test_builder_rollforward_capped_is_a_warning(self):
        event = AuditEventBuilder.rollforward_capped("2000-01-01", "monthly", "2002-01-01", 24)
        assert event.severity == AuditSeverity.WARNING
        assert "24" in event.description


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            entry_id=uuid4(),
            issues=[
                ValidationIssue(
                    field="quantity",
                    issue_type="oversell",
                    message="Sell exceeds position",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.is_valid is False
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            entry_id=uuid4(),
            issues=[
                ValidationIssue(
                    field="quantity",
                    issue_type="zero_quantity",
                    message="Buy with zero quantity",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.warnings == ["Buy with zero quantity"]

    def test_severity_is_constrained(self):
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
