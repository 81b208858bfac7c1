"""
Abstract Backend Interface

DESIGN DECISION: The relational backend (tables, one stored procedure,
a change feed) sits behind one small async interface. This allows us to:
1. Run against Google Sheets without any database to operate
2. Use in-memory storage for testing
3. Assert in tests exactly which predicates every call carried

The interface is intentionally simple - equality filters, ordering and a
limit. Callers always pass the owning-key predicate themselves; no
implementation adds or relaxes it.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from family_finance.backend.realtime import ChangeFeed


class OrderBy(BaseModel):
    """
    One ordering term.

    `nulls_first` left as None follows the relational default: nulls
    last when ascending, nulls first when descending.
    """
    model_config = ConfigDict(frozen=True)

    column: str
    ascending: bool = True
    nulls_first: Optional[bool] = None


Filters = Mapping[str, Any]
Row = dict[str, Any]


class BackendClient(ABC):
    """
    Abstract interface for the managed backend.

    Any backend implementation (Google Sheets, in-memory, ...) must
    implement these methods. Every mutating method publishes a change
    event on `changes` after it succeeds.
    """

    def __init__(self, change_feed: Optional[ChangeFeed] = None):
        self._changes = change_feed or ChangeFeed()

    @property
    def changes(self) -> ChangeFeed:
        """Real-time change feed for this backend."""
        return self._changes

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Filters,
        order: Sequence[OrderBy] = (),
        limit: Optional[int] = None,
    ) -> list[Row]:
        """
        Read rows matching every equality predicate in `filters`.

        Raises:
            BackendError: If the read fails
        """
        pass

    @abstractmethod
    async def select_one(self, table: str, filters: Filters) -> Optional[Row]:
        """
        Read the single row matching `filters`.

        Returns:
            The row, or None when nothing matches

        Raises:
            BackendError: If the read fails or more than one row matches
        """
        pass

    @abstractmethod
    async def insert(self, table: str, row: Row) -> Row:
        """
        Insert a row. `id`, `created_at` and `updated_at` are filled in
        when absent.

        Returns:
            The stored row
        """
        pass

    @abstractmethod
    async def update(self, table: str, values: Row, filters: Filters) -> list[Row]:
        """
        Update every row matching `filters`.

        Returns:
            The updated rows (empty when nothing matched)
        """
        pass

    @abstractmethod
    async def delete(self, table: str, filters: Filters) -> int:
        """
        Delete every row matching `filters`.

        Returns:
            Number of rows deleted
        """
        pass

    @abstractmethod
    async def rpc(self, name: str, params: Mapping[str, Any]) -> list[Row]:
        """
        Call a stored procedure.

        Raises:
            UnknownProcedureError: If the backend has no such procedure
        """
        pass


class BackendError(Exception):
    """Base exception for backend operations."""
    pass


class ConnectionError(BackendError):
    """Could not connect to the backend."""
    pass


class UnknownProcedureError(BackendError):
    """Stored procedure does not exist."""
    pass
