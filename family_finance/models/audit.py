"""
Audit Models for Family Finance

Gated actions, record mutations and admin changes are logged for audit
purposes. This provides:
1. Traceability of who reached which feature on which plan
2. Debugging information when the backend misbehaves
3. Accountability for admin changes to subscriptions and roles

DESIGN DECISION: Audit logs are append-only. We never delete or modify them,
and the writer never reads them back.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Access control
    ACCESS_GRANTED = "access_granted"
    ACCESS_DENIED = "access_denied"
    ACCESS_LOGGED = "access_logged"

    # Family-scoped records
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"

    # Admin area
    SUBSCRIPTION_CHANGED = "subscription_changed"
    ROLE_GRANTED = "role_granted"
    ROLE_REVOKED = "role_revoked"

    # System events
    BACKEND_ERROR = "backend_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    `actor_user_id`, `plan` and `entitled` capture who acted and what the
    subscription looked like at that moment.
    """

    # Identity
    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Who and what
    actor_user_id: Optional[str] = None
    action: str = Field(..., min_length=1, max_length=200)
    resource: Optional[str] = None
    resource_id: Optional[str] = None

    # Subscription snapshot at the time of the event
    plan: Optional[str] = None
    entitled: Optional[bool] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "actor_user_id": self.actor_user_id,
            "action": self.action,
            "resource": self.resource,
            "resource_id": self.resource_id,
            "plan": self.plan,
            "entitled": self.entitled,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_backend_row(self) -> dict:
        """
        Convert to an `admin_audit_logs` row.

        The table keeps the actor, a flat action name and a JSON details
        blob; everything else goes into details.
        """
        details = dict(self.details)
        details.update({
            "event_id": str(self.event_id),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "resource": self.resource,
            "resource_id": self.resource_id,
            "timestamp": self.timestamp.isoformat(),
            "user_plan": self.plan,
            "is_subscribed": self.entitled,
        })
        if self.error_message:
            details["error_message"] = self.error_message
        return {
            "admin_user_id": self.actor_user_id,
            "action": self.action,
            # round-trip so every value is JSON-serializable
            "details": json.loads(json.dumps(details, default=str)),
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.access_denied(user_id, "premium", "expired", ...)
        event = AuditEventBuilder.record_created(user_id, "liabilities", row_id)
    """

    @staticmethod
    def access_granted(
        user_id: str,
        required_plan: str,
        plan: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_GRANTED,
            actor_user_id=user_id,
            action=f"access_{required_plan}",
            resource="subscription",
            plan=plan,
            entitled=True,
            description=f"Access granted for plan requirement: {required_plan}",
            details={"required_plan": required_plan},
        )

    @staticmethod
    def access_denied(
        user_id: Optional[str],
        required_plan: str,
        reason: str,
        plan: Optional[str] = None,
        entitled: Optional[bool] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_DENIED,
            severity=AuditSeverity.WARNING,
            actor_user_id=user_id,
            action=f"access_{required_plan}",
            resource="subscription",
            plan=plan,
            entitled=entitled,
            description=f"Access denied ({reason}) for plan requirement: {required_plan}",
            details={"required_plan": required_plan, "reason": reason},
        )

    @staticmethod
    def access_logged(
        user_id: str,
        resource: str,
        action: str,
        plan: Optional[str],
        entitled: Optional[bool],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_LOGGED,
            actor_user_id=user_id,
            action=f"{action}_{resource}",
            resource=resource,
            plan=plan,
            entitled=entitled,
            description=f"User performed {action} on {resource}",
            details={"resource": resource, "action": action},
        )

    @staticmethod
    def record_created(user_id: str, table: str, record_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            actor_user_id=user_id,
            action=f"create_{table}",
            resource=table,
            resource_id=record_id,
            description=f"Record created in {table}",
        )

    @staticmethod
    def record_updated(user_id: str, table: str, record_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            actor_user_id=user_id,
            action=f"update_{table}",
            resource=table,
            resource_id=record_id,
            description=f"Record updated in {table}",
            details={"fields": sorted(fields)},
        )

    @staticmethod
    def record_deleted(user_id: str, table: str, record_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            actor_user_id=user_id,
            action=f"delete_{table}",
            resource=table,
            resource_id=record_id,
            description=f"Record deleted from {table}",
        )

    @staticmethod
    def subscription_changed(
        admin_user_id: str,
        target_user_id: str,
        changes: dict[str, Any],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_CHANGED,
            actor_user_id=admin_user_id,
            action="update_subscription",
            resource="subscriptions",
            resource_id=target_user_id,
            description=f"Subscription of {target_user_id} changed by admin",
            details={"changes": changes},
        )

    @staticmethod
    def role_changed(
        admin_user_id: str,
        target_user_id: str,
        role: str,
        granted: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROLE_GRANTED if granted else AuditEventType.ROLE_REVOKED,
            actor_user_id=admin_user_id,
            action="grant_role" if granted else "revoke_role",
            resource="user_roles",
            resource_id=target_user_id,
            description=f"Role {role} {'granted to' if granted else 'revoked from'} {target_user_id}",
            details={"role": role},
        )

    @staticmethod
    def backend_error(
        user_id: Optional[str],
        operation: str,
        table: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKEND_ERROR,
            severity=AuditSeverity.ERROR,
            actor_user_id=user_id,
            action=f"{operation}_{table}",
            resource=table,
            description=f"Backend error during {operation} on {table}",
            error_message=error_message,
        )
