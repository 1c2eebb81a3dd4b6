"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the persistent backend; the in-memory store backs tests
and unconfigured runs.
"""

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
from finledger.services.storage.memory import InMemoryStore

__all__ = [
    # Interfaces
    "AlertStorageInterface",
    "AuditStorageInterface",
    "GoalStorageInterface",
    "InvestmentStorageInterface",
    "NotificationStorageInterface",
    "ObligationStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryStore",
]
