"""
Admin area.

Lets administrators inspect and adjust subscriptions and manage roles.
Administrators are users holding the "admin" role in `user_roles`.

SECURITY:
- Every operation re-checks the caller's role first
- A failed role lookup counts as "not an admin"
- Every change is written to the audit trail with the admin as actor
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from family_finance.audit import AuditLogger
from family_finance.auth import Session
from family_finance.backend import BackendClient, BackendError, OrderBy
from family_finance.config import get_settings
from family_finance.models.subscription import (
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
)
from family_finance.notifications import Notifier

logger = structlog.get_logger(__name__)

USER_ROLES_TABLE = "user_roles"
SUBSCRIPTIONS_TABLE = "subscriptions"
ADMIN_ROLE = "admin"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubscriptionUpdate(BaseModel):
    """Fields an admin may change on a subscription. Unset fields stay as they are."""
    model_config = ConfigDict(extra="forbid")

    plan: Optional[SubscriptionPlan] = None
    status: Optional[SubscriptionStatus] = None
    trial_end: Optional[datetime] = None
    current_period_end: Optional[datetime] = None


class AdminService:
    """Subscription and role management for administrators."""

    def __init__(
        self,
        backend: BackendClient,
        notifier: Notifier,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._backend = backend
        self._notifier = notifier
        self._audit_logger = audit_logger
        self._clock = clock

    async def is_admin(self, session: Session) -> bool:
        if session.user is None:
            return False
        try:
            rows = await self._backend.select(
                USER_ROLES_TABLE,
                {"user_id": session.user.id, "role": ADMIN_ROLE},
                limit=1,
            )
        except BackendError as e:
            logger.error("admin_role_lookup_failed", user_id=session.user.id, error=str(e))
            return False
        return bool(rows)

    async def _require_admin(self, session: Session, action: str) -> Optional[str]:
        """The admin's user id, or None after notifying the caller."""
        if await self.is_admin(session):
            return session.user.id
        logger.warning("admin_action_denied", user_id=session.user_id, action=action)
        self._notifier.error(
            "Access denied",
            "Only administrators can do this.",
        )
        if self._audit_logger:
            await self._audit_logger.log_access_denied(
                user_id=session.user_id,
                required_plan=ADMIN_ROLE,
                reason="not_admin",
            )
        return None

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def list_subscriptions(self, session: Session) -> list[Subscription]:
        """Every subscription, newest first. Unparseable rows are skipped."""
        if await self._require_admin(session, "list_subscriptions") is None:
            return []
        try:
            rows = await self._backend.select(
                SUBSCRIPTIONS_TABLE,
                {},
                order=(OrderBy(column="created_at", ascending=False),),
            )
        except BackendError as e:
            logger.error("admin_subscription_list_failed", error=str(e))
            self._notifier.error(
                "Error loading subscriptions",
                "We could not load the subscriptions.",
            )
            return []

        subscriptions = []
        for row in rows:
            try:
                subscriptions.append(Subscription.model_validate(row))
            except ValidationError as e:
                logger.warning("admin_subscription_row_skipped", user_id=row.get("user_id"), error=str(e))
        return subscriptions

    async def update_subscription(
        self,
        session: Session,
        user_id: str,
        changes: SubscriptionUpdate,
    ) -> bool:
        admin_id = await self._require_admin(session, "update_subscription")
        if admin_id is None:
            return False

        values = changes.model_dump(mode="json", exclude_unset=True)
        if not values:
            self._notifier.error(
                "Nothing to update",
                "Choose at least one field to change.",
            )
            return False

        try:
            updated = await self._backend.update(SUBSCRIPTIONS_TABLE, values, {"user_id": user_id})
        except BackendError as e:
            logger.error("admin_subscription_update_failed", target_user_id=user_id, error=str(e))
            self._notifier.error(
                "Error updating subscription",
                "We could not update the subscription.",
            )
            if self._audit_logger:
                await self._audit_logger.log_backend_error(
                    user_id=admin_id,
                    operation="update",
                    table=SUBSCRIPTIONS_TABLE,
                    error_message=str(e),
                )
            return False

        if not updated:
            self._notifier.error(
                "Error updating subscription",
                "That user has no subscription.",
            )
            return False

        self._notifier.success(
            "Subscription updated",
            "The subscription was updated.",
        )
        if self._audit_logger:
            await self._audit_logger.log_subscription_changed(
                admin_user_id=admin_id,
                target_user_id=user_id,
                changes=values,
            )
        return True

    async def grant_trial(self, session: Session, user_id: str, days: Optional[int] = None) -> bool:
        """Put the user on a trial that ends `days` from now."""
        days = days if days is not None else get_settings().app.default_trial_days
        return await self.update_subscription(
            session,
            user_id,
            SubscriptionUpdate(
                status=SubscriptionStatus.TRIAL,
                trial_end=self._clock() + timedelta(days=days),
            ),
        )

    async def activate(
        self,
        session: Session,
        user_id: str,
        plan: SubscriptionPlan,
        days: int = 30,
    ) -> bool:
        """Activate a paid plan for `days`."""
        return await self.update_subscription(
            session,
            user_id,
            SubscriptionUpdate(
                plan=plan,
                status=SubscriptionStatus.ACTIVE,
                current_period_end=self._clock() + timedelta(days=days),
            ),
        )

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    async def grant_role(self, session: Session, user_id: str, role: str = ADMIN_ROLE) -> bool:
        admin_id = await self._require_admin(session, "grant_role")
        if admin_id is None:
            return False

        try:
            existing = await self._backend.select(USER_ROLES_TABLE, {"user_id": user_id, "role": role}, limit=1)
            if not existing:
                await self._backend.insert(USER_ROLES_TABLE, {"user_id": user_id, "role": role})
        except BackendError as e:
            logger.error("admin_role_grant_failed", target_user_id=user_id, role=role, error=str(e))
            self._notifier.error("Error granting role", f"We could not grant the {role} role.")
            return False

        self._notifier.success("Role granted", f"The user now has the {role} role.")
        if self._audit_logger:
            await self._audit_logger.log_role_changed(admin_id, user_id, role, granted=True)
        return True

    async def revoke_role(self, session: Session, user_id: str, role: str = ADMIN_ROLE) -> bool:
        admin_id = await self._require_admin(session, "revoke_role")
        if admin_id is None:
            return False

        try:
            removed = await self._backend.delete(USER_ROLES_TABLE, {"user_id": user_id, "role": role})
        except BackendError as e:
            logger.error("admin_role_revoke_failed", target_user_id=user_id, role=role, error=str(e))
            self._notifier.error("Error revoking role", f"We could not revoke the {role} role.")
            return False

        if removed == 0:
            self._notifier.error("Error revoking role", f"The user does not have the {role} role.")
            return False

        self._notifier.success("Role revoked", f"The {role} role was removed.")
        if self._audit_logger:
            await self._audit_logger.log_role_changed(admin_id, user_id, role, granted=False)
        return True
