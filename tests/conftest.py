"""
Shared fixtures.

Everything runs against the in-memory store with fake quote and
notification collaborators. No network calls.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import pytest

from finledger.audit import AuditLogger
from finledger.models import Notification, NotificationKind, Quote
from finledger.services.notifications import (
    NotificationDispatchError,
    NotificationDispatcherInterface,
    StoredNotificationDispatcher,
)
from finledger.services.quotes import QuoteProviderError, QuoteProviderInterface
from finledger.services.storage import InMemoryStore

USER = "user-1"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FakeQuoteProvider(QuoteProviderInterface):
    """Serves fixed prices and records which symbols were requested."""

    def __init__(self, prices: Optional[dict[str, float]] = None, fail: bool = False):
        self.prices = prices or {}
        self.fail = fail
        self.requests: list[list[str]] = []

    async def get_quotes(self, symbols: Iterable[str]) -> dict[str, Quote]:
        symbols = list(symbols)
        self.requests.append(symbols)
        if self.fail:
            raise QuoteProviderError("provider down")
        return {
            s: Quote(symbol=s, price=self.prices[s])
            for s in symbols
            if s in self.prices
        }


class FailingDispatcher(NotificationDispatcherInterface):
    """Every dispatch raises."""

    def __init__(self):
        self.attempts = 0

    async def dispatch(
        self,
        user_id: str,
        title: str,
        message: str,
        kind: NotificationKind,
        metadata: Optional[dict[str, Any]] = None,
        dedupe_key: Optional[str] = None,
    ) -> Notification:
        self.attempts += 1
        raise NotificationDispatchError("push service unavailable")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def audit_logger(store) -> AuditLogger:
    return AuditLogger(store)


@pytest.fixture
def dispatcher(store) -> StoredNotificationDispatcher:
    return StoredNotificationDispatcher(store)


@pytest.fixture
def quotes() -> FakeQuoteProvider:
    return FakeQuoteProvider()
