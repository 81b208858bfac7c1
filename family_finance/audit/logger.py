"""
Audit Logger

DESIGN DECISION: Gated actions and record mutations are logged.
This provides:
1. Traceability of who used which feature on which plan
2. Debugging capability
3. Accountability for admin changes

The audit logger:
- Is async so callers can await it alongside their own backend calls
- Gracefully handles failures (never raises, never blocks the action)
- Always logs locally, even when persistence fails
"""

from typing import Any, Optional

import structlog

from family_finance.audit.storage import BackendAuditStorage
from family_finance.errors import AuditLogError
from family_finance.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The backend audit table (for the admin area)
    """

    def __init__(
        self,
        storage: Optional[BackendAuditStorage] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except AuditLogError as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False
            except Exception as e:
                # a broken backend client must not surface through auditing
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_access_granted(
        self,
        user_id: str,
        required_plan: str,
        plan: Optional[str],
    ) -> bool:
        """Log a granted access check."""
        return await self.log(AuditEventBuilder.access_granted(
            user_id=user_id,
            required_plan=required_plan,
            plan=plan,
        ))

    async def log_access_denied(
        self,
        user_id: Optional[str],
        required_plan: str,
        reason: str,
        plan: Optional[str] = None,
        entitled: Optional[bool] = None,
    ) -> bool:
        """Log a denied access check."""
        return await self.log(AuditEventBuilder.access_denied(
            user_id=user_id,
            required_plan=required_plan,
            reason=reason,
            plan=plan,
            entitled=entitled,
        ))

    async def log_access(
        self,
        user_id: str,
        resource: str,
        action: str,
        plan: Optional[str],
        entitled: Optional[bool],
    ) -> bool:
        """Log that a user performed `action` on `resource`."""
        return await self.log(AuditEventBuilder.access_logged(
            user_id=user_id,
            resource=resource,
            action=action,
            plan=plan,
            entitled=entitled,
        ))

    async def log_record_created(self, user_id: str, table: str, record_id: Optional[str]) -> bool:
        return await self.log(AuditEventBuilder.record_created(user_id, table, record_id))

    async def log_record_updated(
        self,
        user_id: str,
        table: str,
        record_id: str,
        fields: list[str],
    ) -> bool:
        return await self.log(AuditEventBuilder.record_updated(user_id, table, record_id, fields))

    async def log_record_deleted(self, user_id: str, table: str, record_id: str) -> bool:
        return await self.log(AuditEventBuilder.record_deleted(user_id, table, record_id))

    async def log_subscription_changed(
        self,
        admin_user_id: str,
        target_user_id: str,
        changes: dict[str, Any],
    ) -> bool:
        return await self.log(AuditEventBuilder.subscription_changed(
            admin_user_id=admin_user_id,
            target_user_id=target_user_id,
            changes=changes,
        ))

    async def log_role_changed(
        self,
        admin_user_id: str,
        target_user_id: str,
        role: str,
        granted: bool,
    ) -> bool:
        return await self.log(AuditEventBuilder.role_changed(
            admin_user_id=admin_user_id,
            target_user_id=target_user_id,
            role=role,
            granted=granted,
        ))

    async def log_backend_error(
        self,
        user_id: Optional[str],
        operation: str,
        table: str,
        error_message: str,
    ) -> bool:
        """Log a backend error seen by a repository or service."""
        return await self.log(AuditEventBuilder.backend_error(
            user_id=user_id,
            operation=operation,
            table=table,
            error_message=error_message,
        ))
