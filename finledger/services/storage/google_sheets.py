"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the record store for a single household:
1. The user can read their ledger, subscriptions and alerts directly
2. No database setup required
3. Built-in backup and version history

TRADEOFFS:
- Not suitable for high-volume data (fine for personal use)
- No transactions (committee creation compensates on failure)
- Limited query capabilities (we filter in Python)

Each entity lives in its own worksheet, one record per row. The header
row is the model's field list; nested fields are stored as JSON.
"""

import functools
import json
from datetime import date, datetime
from typing import Any, Generic, Iterable, Optional, TypeVar
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import BaseModel
from tenacity import retry, stop_after_attempt, wait_exponential

from finledger.config import get_settings
from finledger.models.alerts import AlertStatus, PriceAlert
from finledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from finledger.models.ledger import Investment, LedgerEntry
from finledger.models.notification import Notification, NotificationKind
from finledger.models.planning import CashTransaction, CashTransactionType, Goal
from finledger.models.schedule import (
    SIP,
    Committee,
    CommitteeInstallment,
    Subscription,
)
from finledger.services.storage.interface import (
    AlertStorageInterface,
    AuditStorageInterface,
    DuplicateError,
    GoalStorageInterface,
    InvestmentStorageInterface,
    NotFoundError,
    NotificationStorageInterface,
    ObligationStorageInterface,
    StorageConnectionError,
    StorageError,
)

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

sheets_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @property
    def settings(self):
        return self._settings

    @sheets_retry
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, name: str, columns: list[str]) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=name,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


class SheetTable(Generic[ModelT]):
    """
    One worksheet holding one model type, keyed by the first column.

    Cells are written RAW. Strings are stored as-is, everything else as
    JSON, and empty cells decode to the field default.
    """

    def __init__(
        self,
        client: GoogleSheetsClient,
        sheet_name: str,
        model_cls: type[ModelT],
        key: str = "id",
    ):
        self._client = client
        self._sheet_name = sheet_name
        self._model_cls = model_cls
        self._key = key
        self.columns = [key] + [f for f in model_cls.model_fields if f != key]

    @property
    def sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(self._sheet_name, self.columns)

    def to_row(self, record: ModelT) -> list[str]:
        data = record.model_dump(mode="json")
        return [self._encode(data.get(column)) for column in self.columns]

    @staticmethod
    def _encode(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return json.dumps(value)

    def from_row(self, header: list[str], row: list[str]) -> ModelT:
        data: dict[str, Any] = {}
        for column, cell in zip(header, row):
            if column not in self._model_cls.model_fields or cell == "":
                continue
            annotation = self._model_cls.model_fields[column].annotation
            if annotation in (str, Optional[str]):
                data[column] = cell
            else:
                data[column] = self._decode(cell)
        return self._model_cls.model_validate(data)

    @staticmethod
    def _decode(cell: str) -> Any:
        # Dates, UUIDs and enum values were written without JSON quoting
        try:
            return json.loads(cell)
        except ValueError:
            return cell

    def _read(self) -> tuple[list[str], list[list[str]]]:
        values = self.sheet.get_all_values()
        if not values:
            return list(self.columns), []
        return values[0], values[1:]

    def all(self) -> list[ModelT]:
        header, rows = self._read()
        records = []
        for row in rows:
            if not row or not row[0]:
                continue
            try:
                records.append(self.from_row(header, row))
            except ValueError as e:
                logger.warning(
                    "sheet_row_skipped",
                    sheet=self._sheet_name,
                    row_key=row[0],
                    error=str(e),
                )
        return records

    def find(self, record_id: UUID) -> tuple[Optional[int], Optional[ModelT]]:
        """Returns the 1-based sheet row index and the decoded record."""
        header, rows = self._read()
        for idx, row in enumerate(rows, start=2):  # Row 1 is the header
            if row and row[0] == str(record_id):
                return idx, self.from_row(header, row)
        return None, None

    @sheets_retry
    def append(self, records: Iterable[ModelT]) -> None:
        rows = [self.to_row(r) for r in records]
        if rows:
            self.sheet.append_rows(rows, value_input_option="RAW")

    def replace(self, record: ModelT) -> None:
        record_id = getattr(record, self._key)
        idx, _ = self.find(record_id)
        if idx is None:
            raise NotFoundError(f"{self._model_cls.__name__} not found: {record_id}")
        self.sheet.update(
            range_name=f"A{idx}",
            values=[self.to_row(record)],
            value_input_option="RAW",
        )

    def delete(self, record_id: UUID) -> bool:
        idx, _ = self.find(record_id)
        if idx is None:
            return False
        self.sheet.delete_rows(idx)
        return True


def _wrap(action: str):
    """Turn backend failures into StorageError, passing our own errors through."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except StorageError:
                raise
            except Exception as e:
                raise StorageError(f"Failed to {action}: {e}") from e
        return wrapper
    return decorator


class GoogleSheetsInvestmentStorage(InvestmentStorageInterface):
    """Investments and ledger entries, one worksheet each."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        names = self._client.settings
        self._investments = SheetTable(self._client, names.investments_sheet_name, Investment)
        self._entries = SheetTable(self._client, names.ledger_sheet_name, LedgerEntry)

    @_wrap("save investment")
    async def save_investment(self, investment: Investment) -> bool:
        self._investments.append([investment])
        return True

    @_wrap("get investment")
    async def get_investment(
        self,
        user_id: str,
        investment_id: UUID,
    ) -> Optional[Investment]:
        _, investment = self._investments.find(investment_id)
        if investment is None or investment.user_id != user_id:
            return None
        return investment

    @_wrap("update investment")
    async def update_investment(self, investment: Investment) -> bool:
        self._investments.replace(investment)
        return True

    @_wrap("save ledger entry")
    async def save_entry(self, entry: LedgerEntry) -> bool:
        idx, _ = self._entries.find(entry.id)
        if idx is not None:
            raise DuplicateError(f"Ledger entry already exists: {entry.id}")
        self._entries.append([entry])
        return True

    @_wrap("list ledger entries")
    async def list_entries(
        self,
        user_id: str,
        investment_id: UUID,
    ) -> list[LedgerEntry]:
        entries = [
            e for e in self._entries.all()
            if e.user_id == user_id and e.investment_id == investment_id
        ]
        entries.sort(key=lambda e: e.date)
        return entries

    @_wrap("delete ledger entry")
    async def delete_entry(
        self,
        user_id: str,
        investment_id: UUID,
        entry_id: UUID,
    ) -> bool:
        _, entry = self._entries.find(entry_id)
        if entry is None or entry.user_id != user_id or entry.investment_id != investment_id:
            return False
        return self._entries.delete(entry_id)


class GoogleSheetsObligationStorage(ObligationStorageInterface):
    """Subscriptions, committees, committee payments and SIPs."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        names = self._client.settings
        self._subscriptions = SheetTable(self._client, names.subscriptions_sheet_name, Subscription)
        self._committees = SheetTable(self._client, names.committees_sheet_name, Committee)
        self._installments = SheetTable(
            self._client, names.installments_sheet_name, CommitteeInstallment
        )
        self._sips = SheetTable(self._client, names.sips_sheet_name, SIP)

    @_wrap("save subscription")
    async def save_subscription(self, subscription: Subscription) -> bool:
        self._subscriptions.append([subscription])
        return True

    @_wrap("get subscription")
    async def get_subscription(
        self,
        user_id: str,
        subscription_id: UUID,
    ) -> Optional[Subscription]:
        _, subscription = self._subscriptions.find(subscription_id)
        if subscription is None or subscription.user_id != user_id:
            return None
        return subscription

    @_wrap("update subscription")
    async def update_subscription(self, subscription: Subscription) -> bool:
        self._subscriptions.replace(subscription)
        return True

    @_wrap("list due subscriptions")
    async def list_subscriptions_due(
        self,
        due_on_or_before: date,
    ) -> list[Subscription]:
        due = [
            s for s in self._subscriptions.all()
            if s.active and s.next_due_date <= due_on_or_before
        ]
        due.sort(key=lambda s: s.next_due_date)
        return due

    @_wrap("create committee")
    async def create_committee(
        self,
        committee: Committee,
        installments: list[CommitteeInstallment],
    ) -> bool:
        idx, _ = self._committees.find(committee.id)
        if idx is not None:
            raise DuplicateError(f"Committee already exists: {committee.id}")

        # The schedule goes in with one API call. If the committee row then
        # fails, the schedule is removed again so no orphans remain.
        self._installments.append(installments)
        try:
            self._committees.append([committee])
        except Exception:
            for installment in installments:
                self._installments.delete(installment.id)
            raise
        return True

    @_wrap("get committee")
    async def get_committee(
        self,
        user_id: str,
        committee_id: UUID,
    ) -> Optional[Committee]:
        _, committee = self._committees.find(committee_id)
        if committee is None or committee.user_id != user_id:
            return None
        return committee

    @_wrap("update committee")
    async def update_committee(self, committee: Committee) -> bool:
        self._committees.replace(committee)
        return True

    @_wrap("list installments")
    async def list_installments(
        self,
        user_id: str,
        committee_id: UUID,
    ) -> list[CommitteeInstallment]:
        installments = [
            i for i in self._installments.all()
            if i.user_id == user_id and i.committee_id == committee_id
        ]
        installments.sort(key=lambda i: i.month)
        return installments

    @_wrap("update installment")
    async def update_installment(self, installment: CommitteeInstallment) -> bool:
        self._installments.replace(installment)
        return True

    @_wrap("save SIP")
    async def save_sip(self, sip: SIP) -> bool:
        self._sips.append([sip])
        return True

    @_wrap("list SIPs")
    async def list_sips(self, user_id: str) -> list[SIP]:
        return [s for s in self._sips.all() if s.user_id == user_id]

    @_wrap("update SIP")
    async def update_sip(self, sip: SIP) -> bool:
        self._sips.replace(sip)
        return True


class GoogleSheetsAlertStorage(AlertStorageInterface):
    """Price alerts."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._alerts = SheetTable(
            self._client, self._client.settings.alerts_sheet_name, PriceAlert
        )

    @_wrap("save alert")
    async def save_alert(self, alert: PriceAlert) -> bool:
        self._alerts.append([alert])
        return True

    @_wrap("get alert")
    async def get_alert(
        self,
        user_id: str,
        alert_id: UUID,
    ) -> Optional[PriceAlert]:
        _, alert = self._alerts.find(alert_id)
        if alert is None or alert.user_id != user_id:
            return None
        return alert

    @_wrap("list active alerts")
    async def list_active_alerts(self) -> list[PriceAlert]:
        return [a for a in self._alerts.all() if a.status == AlertStatus.ACTIVE]

    @_wrap("update alert")
    async def update_alert(self, alert: PriceAlert) -> bool:
        self._alerts.replace(alert)
        return True


class GoogleSheetsGoalStorage(GoalStorageInterface):
    """Goals and cash-flow transactions."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        names = self._client.settings
        self._goals = SheetTable(self._client, names.goals_sheet_name, Goal)
        self._transactions = SheetTable(
            self._client, names.transactions_sheet_name, CashTransaction
        )

    @_wrap("save goal")
    async def save_goal(self, goal: Goal) -> bool:
        self._goals.append([goal])
        return True

    @_wrap("list goals")
    async def list_goals(self, user_id: str) -> list[Goal]:
        return [g for g in self._goals.all() if g.user_id == user_id]

    @_wrap("save transaction")
    async def save_cash_transaction(self, transaction: CashTransaction) -> bool:
        self._transactions.append([transaction])
        return True

    @_wrap("list transactions")
    async def list_cash_transactions(
        self,
        user_id: str,
        since: datetime,
        types: Optional[Iterable[CashTransactionType]] = None,
    ) -> list[CashTransaction]:
        wanted = set(types) if types is not None else None
        return [
            t for t in self._transactions.all()
            if t.user_id == user_id
            and t.date >= since
            and (wanted is None or t.type in wanted)
        ]


class GoogleSheetsNotificationStorage(NotificationStorageInterface):
    """Notification feed."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._notifications = SheetTable(
            self._client, self._client.settings.notifications_sheet_name, Notification
        )

    @_wrap("save notification")
    async def save_notification(self, notification: Notification) -> bool:
        self._notifications.append([notification])
        return True

    @_wrap("check notification")
    async def notification_exists(
        self,
        user_id: str,
        kind: NotificationKind,
        dedupe_key: str,
    ) -> bool:
        return any(
            n.user_id == user_id and n.kind == kind and n.dedupe_key == dedupe_key
            for n in self._notifications.all()
        )

    @_wrap("list notifications")
    async def list_notifications(
        self,
        user_id: str,
        limit: int = 50,
    ) -> list[Notification]:
        mine = [n for n in self._notifications.all() if n.user_id == user_id]
        mine.sort(key=lambda n: n.created_at, reverse=True)
        return mine[:limit]


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.audit_sheet_name, AUDIT_COLUMNS
        )

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=UUID(safe_get(5)) if safe_get(5) else None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _events(self, keep) -> list[AuditEvent]:
        events = []
        for row in self._sheet().get_all_values()[1:]:
            if not row or not row[0] or not keep(row):
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError as e:
                logger.warning("audit_row_skipped", event_id=row[0], error=str(e))
        return events

    @sheets_retry
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._sheet().append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}") from e

    @_wrap("get audit events")
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = self._events(lambda row: len(row) > 6 and row[6] == str(correlation_id))
        events.sort(key=lambda e: e.timestamp)
        return events

    @_wrap("get audit events")
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = self._events(
            lambda row: len(row) > 5 and row[4] == entity_type and row[5] == str(entity_id)
        )
        events.sort(key=lambda e: e.timestamp)
        return events

    @_wrap("get audit events")
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = self._events(lambda row: True)
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
