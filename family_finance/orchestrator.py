"""
Application wiring for Family Finance.

Builds the backend and audit logger once per process, and everything
that talks to a user once per session.

DESIGN DECISION: Only the backend and the audit logger are shared.
Notifier, services and repositories are built per session through
`services_for`, so one user's toasts and snapshots never reach another.
"""

from typing import Optional

import structlog

from family_finance.access import AccessValidator, RouteGuard
from family_finance.admin import AdminService
from family_finance.audit import AuditLogger, BackendAuditStorage
from family_finance.auth import Session
from family_finance.backend import BackendClient, GoogleSheetsBackend, InMemoryBackend
from family_finance.config import get_settings
from family_finance.notifications import Notifier
from family_finance.repositories import (
    AssetRepository,
    CategoryRepository,
    FamilyMemberRepository,
    FamilyRepository,
    LiabilityRepository,
    TransactionRepository,
)
from family_finance.services import NetWorthService

logger = structlog.get_logger(__name__)


class UserRepositories:
    """The repositories one session works with."""

    def __init__(
        self,
        backend: BackendClient,
        session: Session,
        notifier: Notifier,
        audit_logger: Optional[AuditLogger] = None,
    ):
        args = (backend, session, notifier, audit_logger)
        self.families = FamilyRepository(*args)
        self.family_members = FamilyMemberRepository(*args)
        self.categories = CategoryRepository(*args)
        self.transactions = TransactionRepository(*args)
        self.liabilities = LiabilityRepository(*args)
        self.assets = AssetRepository(*args)

    def all(self) -> list:
        return [
            self.families,
            self.family_members,
            self.categories,
            self.transactions,
            self.liabilities,
            self.assets,
        ]

    def set_session(self, session: Session) -> None:
        for repository in self.all():
            repository.set_session(session)

    async def refresh_all(self) -> None:
        for repository in self.all():
            await repository.refresh()


class SessionServices:
    """One browser session's notifier, services and repositories."""

    def __init__(
        self,
        backend: BackendClient,
        session: Session,
        notifier: Optional[Notifier] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.notifier = notifier or Notifier()
        self.validator = AccessValidator(backend, self.notifier, audit_logger)
        self.net_worth = NetWorthService(backend, self.notifier, audit_logger)
        self.admin = AdminService(backend, self.notifier, audit_logger)
        self.repositories = UserRepositories(backend, session, self.notifier, audit_logger)

    def set_session(self, session: Session) -> None:
        self.repositories.set_session(session)


class AppComponents:
    """Process-wide components, built once."""

    def __init__(
        self,
        backend: BackendClient,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.backend = backend
        self.audit_logger = audit_logger or AuditLogger()

    def services_for(self, session: Session, notifier: Optional[Notifier] = None) -> SessionServices:
        """Fresh per-session services; pass `notifier` to keep an existing queue."""
        return SessionServices(self.backend, session, notifier, self.audit_logger)

    def route_guard(self, require_subscription: bool = False, navigate=None) -> RouteGuard:
        return RouteGuard(require_subscription=require_subscription, navigate=navigate)


def create_backend(kind: Optional[str] = None) -> BackendClient:
    """Build the backend named by `kind` or by the app settings."""
    kind = kind or get_settings().app.backend
    if kind == "google_sheets":
        return GoogleSheetsBackend()
    return InMemoryBackend()


def create_app_components(use_storage: bool = True) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured backend. When False,
                    or when the configured backend cannot be built, an
                    in-memory backend is used instead.
    """
    backend: Optional[BackendClient] = None
    if use_storage:
        try:
            backend = create_backend()
        except Exception as e:
            # storage not configured: continue in memory
            logger.warning("backend_unavailable", error=str(e))
    if backend is None:
        backend = InMemoryBackend()

    audit_logger = AuditLogger(BackendAuditStorage(backend))
    return AppComponents(backend, audit_logger=audit_logger)
