"""Audit logging package."""

from family_finance.audit.logger import AuditLogger
from family_finance.audit.storage import BackendAuditStorage

__all__ = ["AuditLogger", "BackendAuditStorage"]
