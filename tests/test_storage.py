"""
Tests for the storage backends.

The Google Sheets backend runs against an in-process worksheet double so
no API calls are made.
"""

from datetime import date
from uuid import uuid4

import pytest

from finledger.config.settings import GoogleSheetsSettings
from finledger.models import (
    AuditEventBuilder,
    Cadence,
    Committee,
    CommitteeInstallment,
    EntryType,
    LedgerEntry,
    Notification,
    NotificationKind,
    Subscription,
)
from finledger.services.storage import DuplicateError, NotFoundError, StorageError
from finledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsInvestmentStorage,
    GoogleSheetsNotificationStorage,
    GoogleSheetsObligationStorage,
    SheetTable,
)
from tests.conftest import USER, utc


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the storage classes."""

    def __init__(self, header: list[str]):
        self.values: list[list[str]] = [list(header)]
        self.fail_appends = False

    def get_all_values(self) -> list[list[str]]:
        return [list(row) for row in self.values]

    def append_row(self, row, value_input_option=None):
        self.append_rows([row], value_input_option)

    def append_rows(self, rows, value_input_option=None):
        if self.fail_appends:
            raise RuntimeError("quota exceeded")
        self.values.extend(list(r) for r in rows)

    def update(self, range_name, values, value_input_option=None):
        idx = int(range_name[1:])
        self.values[idx - 1] = list(values[0])

    def delete_rows(self, idx):
        del self.values[idx - 1]


class FakeSheetsClient:

    def __init__(self):
        self.settings = GoogleSheetsSettings.model_construct(
            credentials_path="credentials.json",
            spreadsheet_id="spreadsheet",
        )
        self.worksheets: dict[str, FakeWorksheet] = {}

    def get_worksheet(self, name: str, columns: list[str]) -> FakeWorksheet:
        if name not in self.worksheets:
            self.worksheets[name] = FakeWorksheet(columns)
        return self.worksheets[name]


def subscription(**kwargs) -> Subscription:
    data = {
        "user_id": USER,
        "name": "Netflix",
        "amount": 649.0,
        "cadence": Cadence.MONTHLY,
        "next_due_date": date(2024, 3, 1),
    }
    data.update(kwargs)
    return Subscription(**data)


class TestInMemoryStore:

    async def test_reads_are_copies(self, store):
        sub = subscription()
        await store.save_subscription(sub)

        fetched = await store.get_subscription(USER, sub.id)
        fetched.paid = True

        assert (await store.get_subscription(USER, sub.id)).paid is False

    async def test_duplicate_entry_rejected(self, store):
        entry = LedgerEntry(
            user_id=USER,
            investment_id=uuid4(),
            type=EntryType.BUY,
            quantity=1,
            amount=10,
            date=utc(2024, 1, 1),
        )
        await store.save_entry(entry)
        with pytest.raises(DuplicateError):
            await store.save_entry(entry)

    async def test_update_missing_record_raises(self, store):
        with pytest.raises(NotFoundError):
            await store.update_subscription(subscription())

    async def test_due_list_skips_inactive_and_sorts(self, store):
        later = subscription(name="Later", next_due_date=date(2024, 3, 5))
        sooner = subscription(name="Sooner", next_due_date=date(2024, 2, 20))
        paused = subscription(name="Paused", active=False)
        for s in (later, sooner, paused):
            await store.save_subscription(s)

        due = await store.list_subscriptions_due(date(2024, 3, 10))

        assert [s.name for s in due] == ["Sooner", "Later"]

    async def test_notifications_newest_first(self, store):
        first = Notification(user_id=USER, title="First", message="", created_at=utc(2024, 1, 1))
        second = Notification(user_id=USER, title="Second", message="", created_at=utc(2024, 1, 2))
        await store.save_notification(first)
        await store.save_notification(second)

        assert [n.title for n in await store.list_notifications(USER)] == ["Second", "First"]


class TestGoogleSheetsStorage:

    @pytest.fixture
    def client(self):
        return FakeSheetsClient()

    async def test_subscription_survives_the_sheet(self, client):
        storage = GoogleSheetsObligationStorage(client)
        sub = subscription(name="2024", merchant=None, notes='{"not": "json"}')

        await storage.save_subscription(sub)

        assert await storage.get_subscription(USER, sub.id) == sub

    async def test_header_row_is_model_fields(self, client):
        await GoogleSheetsObligationStorage(client).save_subscription(subscription())

        header = client.worksheets["Subscriptions"].values[0]
        assert header[0] == "id"
        assert "next_due_date" in header

    async def test_update_replaces_row_in_place(self, client):
        storage = GoogleSheetsObligationStorage(client)
        first, second = subscription(name="A"), subscription(name="B")
        await storage.save_subscription(first)
        await storage.save_subscription(second)

        await storage.update_subscription(first.model_copy(update={"paid": True}))

        rows = client.worksheets["Subscriptions"].values
        assert len(rows) == 3
        assert (await storage.get_subscription(USER, first.id)).paid is True
        assert (await storage.get_subscription(USER, second.id)).paid is False

    async def test_update_missing_row_raises_not_found(self, client):
        storage = GoogleSheetsObligationStorage(client)
        with pytest.raises(NotFoundError):
            await storage.update_subscription(subscription())

    async def test_other_users_rows_are_invisible(self, client):
        storage = GoogleSheetsObligationStorage(client)
        sub = subscription()
        await storage.save_subscription(sub)

        assert await storage.get_subscription("someone-else", sub.id) is None

    async def test_committee_failure_leaves_no_orphans(self, client, monkeypatch):
        monkeypatch.setattr(SheetTable.append.retry, "sleep", lambda seconds: None)
        storage = GoogleSheetsObligationStorage(client)
        committee = Committee(
            user_id=USER,
            name="Office committee",
            payout_amount=60000,
            duration=2,
            start_date=date(2024, 1, 1),
        )
        installments = [
            CommitteeInstallment(committee_id=committee.id, user_id=USER, month=m)
            for m in (1, 2)
        ]
        client.get_worksheet("Committees", []).fail_appends = True

        with pytest.raises(StorageError):
            await storage.create_committee(committee, installments)

        assert await storage.list_installments(USER, committee.id) == []

    async def test_ledger_entries_sorted_by_date(self, client):
        storage = GoogleSheetsInvestmentStorage(client)
        investment_id = uuid4()
        late = LedgerEntry(
            user_id=USER, investment_id=investment_id, type=EntryType.SELL,
            quantity=1, amount=120, date=utc(2024, 2, 1),
        )
        early = LedgerEntry(
            user_id=USER, investment_id=investment_id, type=EntryType.BUY,
            quantity=1, amount=100, fees=1.5, date=utc(2024, 1, 1),
        )
        await storage.save_entry(late)
        await storage.save_entry(early)

        assert await storage.list_entries(USER, investment_id) == [early, late]
        with pytest.raises(DuplicateError):
            await storage.save_entry(early)

    async def test_notification_metadata_is_json(self, client):
        storage = GoogleSheetsNotificationStorage(client)
        await storage.save_notification(Notification(
            user_id=USER,
            title="Price alert triggered: INFY.NS",
            message="INFY.NS is at 1510.00",
            kind=NotificationKind.INVESTMENT_ALERT,
            metadata={"symbol": "INFY.NS", "current": 1510.0},
            dedupe_key="k1",
        ))

        assert await storage.notification_exists(USER, NotificationKind.INVESTMENT_ALERT, "k1")
        assert not await storage.notification_exists(USER, NotificationKind.GENERAL, "k1")
        stored = (await storage.list_notifications(USER))[0]
        assert stored.metadata == {"symbol": "INFY.NS", "current": 1510.0}

    async def test_audit_events_by_correlation(self, client):
        storage = GoogleSheetsAuditStorage(client)
        correlation_id = uuid4()
        event = AuditEventBuilder.batch_completed(
            "evaluate-alerts", {"checked": 2}, correlation_id=correlation_id
        )
        await storage.append_event(event)
        await storage.append_event(AuditEventBuilder.batch_completed("remind-subscriptions", {}))

        found = await storage.get_events_by_correlation_id(correlation_id)

        assert [e.event_id for e in found] == [event.event_id]
        assert found[0].details == {"job": "evaluate-alerts", "checked": 2}
        assert len(await storage.get_recent_events()) == 2
