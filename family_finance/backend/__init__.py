"""
Backend Package

Provides the abstract backend client, its change feed, and concrete
implementations. Google Sheets is the persistent backend; the
in-memory one serves development and tests.
"""

from family_finance.backend.interface import (
    BackendClient,
    BackendError,
    ConnectionError,
    OrderBy,
    UnknownProcedureError,
)
from family_finance.backend.google_sheets import GoogleSheetsBackend, GoogleSheetsClient
from family_finance.backend.memory import BackendCall, InMemoryBackend
from family_finance.backend.realtime import (
    ChangeEvent,
    ChangeFeed,
    ChangeSubscription,
    ChangeType,
)

__all__ = [
    # Interface
    "BackendClient",
    "OrderBy",
    # Exceptions
    "BackendError",
    "ConnectionError",
    "UnknownProcedureError",
    # Change feed
    "ChangeEvent",
    "ChangeFeed",
    "ChangeSubscription",
    "ChangeType",
    # Google Sheets implementation
    "GoogleSheetsBackend",
    "GoogleSheetsClient",
    # In-memory implementation
    "BackendCall",
    "InMemoryBackend",
]
