"""
Access validation.

Bridges the current session and the entitlement rules. Gated actions
call `validate_access(session, required_plan)` and proceed only on True.

FAIL CLOSED:
- No user: deny at once, nothing sent to the backend
- Subscription unreadable or missing: deny, generic error notification
- Rules say no: deny, notification naming the reason

`log_access` writes to the audit trail and swallows every failure; it
can never change the outcome of the action it describes.
"""

from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar

import structlog
from pydantic import ValidationError

from family_finance.access.entitlement import (
    AccessDecision,
    DenialReason,
    PlanLike,
    decide,
    plan_label,
)
from family_finance.audit import AuditLogger
from family_finance.auth import Session
from family_finance.backend import BackendClient, BackendError
from family_finance.config import get_settings
from family_finance.errors import (
    AuthenticationMissingError,
    EntitlementDeniedError,
    FamilyFinanceError,
    SubscriptionFetchError,
)
from family_finance.models.subscription import Subscription
from family_finance.notifications import Notifier

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SUBSCRIPTIONS_TABLE = "subscriptions"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccessValidator:
    """
    Decides whether the session's user may use a plan-gated feature.

    Holds no per-user state; concurrent checks are independent.
    """

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
        self._in_flight = 0
        self._audit_enabled = get_settings().access.audit_enabled

    @property
    def validation_loading(self) -> bool:
        """True while at least one check is waiting on the backend."""
        return self._in_flight > 0

    async def fetch_subscription(self, user_id: str) -> Subscription:
        """
        Read the user's single subscription row.

        Raises:
            SubscriptionFetchError: On backend error, missing row or
                a row that does not parse
        """
        try:
            row = await self._backend.select_one(SUBSCRIPTIONS_TABLE, {"user_id": user_id})
        except BackendError as e:
            raise SubscriptionFetchError(f"Could not read subscription: {e}") from e
        if row is None:
            raise SubscriptionFetchError(f"No subscription for user {user_id}")
        try:
            return Subscription.model_validate(row)
        except ValidationError as e:
            raise SubscriptionFetchError(f"Malformed subscription row: {e}") from e

    async def check(self, session: Session, required_plan: PlanLike) -> AccessDecision:
        """
        Strict variant: returns an Allow decision or raises.

        Raises:
            AuthenticationMissingError: No user on the session
            SubscriptionFetchError: Subscription could not be read
            EntitlementDeniedError: The rules denied access
        """
        if session.user is None:
            raise AuthenticationMissingError()

        self._in_flight += 1
        try:
            subscription = await self.fetch_subscription(session.user.id)
        finally:
            self._in_flight -= 1

        decision = decide(subscription, required_plan, self._clock())
        if not decision.allowed:
            raise EntitlementDeniedError(
                reason=decision.reason.value,
                required_plan=decision.required_plan,
                plan=decision.plan,
            )
        return decision

    async def evaluate(self, session: Session, required_plan: PlanLike) -> AccessDecision:
        """
        Lenient variant: always returns a decision, never raises on
        backend trouble. Denials emit a notification.
        """
        user_id = session.user_id
        try:
            decision = await self.check(session, required_plan)
        except AuthenticationMissingError:
            return AccessDecision.deny(
                DenialReason.UNAUTHENTICATED,
                required_plan=plan_label(required_plan),
            )
        except SubscriptionFetchError as e:
            logger.error("subscription_fetch_failed", user_id=user_id, error=str(e))
            self._notifier.error(
                "Validation error",
                "We could not validate your subscription.",
            )
            decision = AccessDecision.deny(
                DenialReason.SUBSCRIPTION_UNAVAILABLE,
                required_plan=plan_label(required_plan),
            )
            await self._audit_denied(user_id, decision)
            return decision
        except ValueError as e:
            # unknown required plan
            logger.error("access_check_failed", user_id=user_id, required_plan=str(required_plan), error=str(e))
            self._notifier.error(
                "Validation error",
                "We could not validate your subscription.",
            )
            decision = AccessDecision.deny(
                DenialReason.INSUFFICIENT_PLAN,
                required_plan=plan_label(required_plan),
            )
            await self._audit_denied(user_id, decision)
            return decision
        except EntitlementDeniedError as e:
            decision = AccessDecision.deny(
                DenialReason(e.reason),
                required_plan=e.required_plan,
                plan=e.plan,
                entitled=e.reason != DenialReason.EXPIRED.value,
            )
            self._notify_denied(decision)
            await self._audit_denied(user_id, decision)
            return decision

        if self._audit_logger and self._audit_enabled:
            await self._audit_logger.log_access_granted(
                user_id=user_id,
                required_plan=decision.required_plan,
                plan=decision.plan,
            )
        return decision

    async def validate_access(self, session: Session, required_plan: PlanLike) -> bool:
        """True when the session's user may use a feature gated at `required_plan`."""
        decision = await self.evaluate(session, required_plan)
        return decision.allowed

    async def has_access(self, session: Session, required_plan: PlanLike) -> bool:
        """Quiet check for optional panels: no notification, no audit row."""
        try:
            await self.check(session, required_plan)
        except (FamilyFinanceError, ValueError):
            return False
        return True

    async def log_access(
        self,
        session: Session,
        resource: str,
        action: str,
        decision: Optional[AccessDecision] = None,
    ) -> None:
        """
        Record that the user performed `action` on `resource`.

        Best effort: every failure is logged locally and dropped.
        """
        if session.user is None or self._audit_logger is None:
            return
        try:
            await self._audit_logger.log_access(
                user_id=session.user.id,
                resource=resource,
                action=action,
                plan=decision.plan if decision is not None else None,
                entitled=decision.entitled if decision is not None else None,
            )
        except Exception as e:
            logger.warning("access_log_failed", resource=resource, action=action, error=str(e))

    async def run_gated(
        self,
        session: Session,
        required_plan: PlanLike,
        resource: str,
        action: str,
        operation: Callable[[], Awaitable[T]],
    ) -> Optional[T]:
        """
        Validate, run `operation` when allowed, then log the access.

        Returns:
            The operation's result, or None when access was denied
        """
        decision = await self.evaluate(session, required_plan)
        if not decision.allowed:
            return None
        result = await operation()
        await self.log_access(session, resource, action, decision)
        return result

    def _notify_denied(self, decision: AccessDecision) -> None:
        if decision.reason == DenialReason.EXPIRED:
            self._notifier.error(
                "Subscription expired",
                "Your subscription has expired. Renew it to keep using this feature.",
            )
        else:
            self._notifier.error(
                "Plan too low",
                f"This feature requires the {decision.required_plan} plan. "
                "Upgrade your subscription.",
            )

    async def _audit_denied(self, user_id: Optional[str], decision: AccessDecision) -> None:
        if self._audit_logger is None or not self._audit_enabled:
            return
        await self._audit_logger.log_access_denied(
            user_id=user_id,
            required_plan=decision.required_plan or "",
            reason=decision.reason.value,
            plan=decision.plan,
            entitled=decision.entitled,
        )
