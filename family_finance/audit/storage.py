"""
Audit storage.

Audit rows are append-only; this writer never reads them back.
"""

from typing import Optional

from family_finance.backend import BackendClient, BackendError
from family_finance.config import get_settings
from family_finance.errors import AuditLogError
from family_finance.models.audit import AuditEvent


class BackendAuditStorage:
    """Appends audit events to the backend's audit table."""

    def __init__(self, backend: BackendClient, table: Optional[str] = None):
        self._backend = backend
        self._table = table or get_settings().access.audit_table

    @property
    def table(self) -> str:
        return self._table

    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event.

        Raises:
            AuditLogError: If the backend rejects the write
        """
        try:
            await self._backend.insert(self._table, event.to_backend_row())
        except BackendError as e:
            raise AuditLogError(f"Failed to write audit event {event.event_id}: {e}") from e
        return True
