"""
In-memory backend.

Used for local development and as the test double. Besides storing
rows it records every call it receives, so tests can assert which
predicates a repository sent, and it can be told to fail specific
operations to exercise error paths.
"""

from typing import Any, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from family_finance.backend.interface import (
    BackendClient,
    BackendError,
    Filters,
    OrderBy,
    Row,
    UnknownProcedureError,
)
from family_finance.backend.query import (
    apply_query,
    calculate_net_worth,
    matches,
    utcnow_iso,
    with_row_defaults,
)
from family_finance.backend.realtime import ChangeEvent, ChangeFeed, ChangeType


class BackendCall(BaseModel):
    """One recorded call."""

    operation: str
    table: str
    filters: dict[str, Any] = Field(default_factory=dict)
    values: Optional[dict[str, Any]] = None


class InMemoryBackend(BackendClient):
    """Dict-of-tables backend with call recording and failure injection."""

    def __init__(
        self,
        tables: Optional[Mapping[str, list[Row]]] = None,
        change_feed: Optional[ChangeFeed] = None,
    ):
        super().__init__(change_feed)
        self._tables: dict[str, list[Row]] = {
            name: [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }
        self._failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[BackendCall] = []

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def fail_on(self, table: str, operation: str, error: Optional[Exception] = None) -> None:
        """Make `operation` ("select", "insert", "update", "delete", "rpc") on `table` raise."""
        self._failures[(table, operation)] = error or BackendError(
            f"simulated {operation} failure on {table}"
        )

    def clear_failures(self) -> None:
        self._failures.clear()

    def rows(self, table: str) -> list[Row]:
        """Copy of the rows currently stored in `table`."""
        return [dict(r) for r in self._tables.get(table, [])]

    def calls_for(self, table: str, operation: Optional[str] = None) -> list[BackendCall]:
        return [
            c for c in self.calls
            if c.table == table and (operation is None or c.operation == operation)
        ]

    def _record(self, operation: str, table: str, filters: Filters, values: Optional[Row] = None) -> None:
        self.calls.append(BackendCall(
            operation=operation,
            table=table,
            filters=dict(filters),
            values=dict(values) if values is not None else None,
        ))
        failure = self._failures.get((table, operation))
        if failure is not None:
            raise failure

    # ------------------------------------------------------------------
    # BackendClient
    # ------------------------------------------------------------------

    async def select(
        self,
        table: str,
        filters: Filters,
        order: Sequence[OrderBy] = (),
        limit: Optional[int] = None,
    ) -> list[Row]:
        self._record("select", table, filters)
        return apply_query(self._tables.get(table, []), filters, order, limit)

    async def select_one(self, table: str, filters: Filters) -> Optional[Row]:
        self._record("select", table, filters)
        found = apply_query(self._tables.get(table, []), filters)
        if len(found) > 1:
            raise BackendError(f"Expected one row in {table}, found {len(found)}")
        return found[0] if found else None

    async def insert(self, table: str, row: Row) -> Row:
        self._record("insert", table, {}, row)
        stored = with_row_defaults(row)
        self._tables.setdefault(table, []).append(stored)
        await self.changes.publish(ChangeEvent(
            table=table, change_type=ChangeType.INSERT, new=dict(stored),
        ))
        return dict(stored)

    async def update(self, table: str, values: Row, filters: Filters) -> list[Row]:
        self._record("update", table, filters, values)
        updated = []
        for row in self._tables.get(table, []):
            if not matches(row, filters):
                continue
            old = dict(row)
            row.update(values)
            if "updated_at" not in values:
                row["updated_at"] = utcnow_iso()
            updated.append((old, dict(row)))
        for old, new in updated:
            await self.changes.publish(ChangeEvent(
                table=table, change_type=ChangeType.UPDATE, new=new, old=old,
            ))
        return [new for _, new in updated]

    async def delete(self, table: str, filters: Filters) -> int:
        self._record("delete", table, filters)
        rows = self._tables.get(table, [])
        removed = [r for r in rows if matches(r, filters)]
        self._tables[table] = [r for r in rows if not matches(r, filters)]
        for old in removed:
            await self.changes.publish(ChangeEvent(
                table=table, change_type=ChangeType.DELETE, old=dict(old),
            ))
        return len(removed)

    async def rpc(self, name: str, params: Mapping[str, Any]) -> list[Row]:
        self._record("rpc", name, params)
        if name == "calculate_net_worth":
            user_id = params.get("target_user_id")
            return calculate_net_worth(
                user_id,
                self._tables.get("assets", []),
                self._tables.get("liabilities", []),
            )
        raise UnknownProcedureError(f"Unknown procedure: {name}")
