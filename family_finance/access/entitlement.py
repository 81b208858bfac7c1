"""
Entitlement rules.

Pure functions over a subscription snapshot. No I/O, no clock unless
the caller omits `now`.

A capability gated at plan P is allowed iff the subscription is
entitled (active, or trial with `trial_end` strictly in the future) and
the subscription's plan sits at or above P in free < premium < family.
Anything unknown counts as the lowest level, never the highest.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from family_finance.models.subscription import (
    PLAN_LEVELS,
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
)

PlanLike = Union[SubscriptionPlan, str, None]


class DenialReason(str, Enum):
    """Why access was refused."""
    # from the entitlement rules
    EXPIRED = "expired"
    INSUFFICIENT_PLAN = "insufficient_plan"
    # from the validator, before the rules run
    UNAUTHENTICATED = "unauthenticated"
    SUBSCRIPTION_UNAVAILABLE = "subscription_unavailable"


class AccessDecision(BaseModel):
    """Allow, or Deny with a reason."""
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[DenialReason] = None
    required_plan: Optional[str] = None
    plan: Optional[str] = None
    entitled: Optional[bool] = None

    @classmethod
    def allow(cls, required_plan: str, plan: Optional[str] = None) -> "AccessDecision":
        return cls(allowed=True, required_plan=required_plan, plan=plan, entitled=True)

    @classmethod
    def deny(
        cls,
        reason: DenialReason,
        required_plan: Optional[str] = None,
        plan: Optional[str] = None,
        entitled: Optional[bool] = None,
    ) -> "AccessDecision":
        return cls(
            allowed=False,
            reason=reason,
            required_plan=required_plan,
            plan=plan,
            entitled=entitled,
        )

    def __bool__(self) -> bool:
        return self.allowed


def plan_label(plan: PlanLike) -> str:
    if isinstance(plan, Enum):
        plan = plan.value
    return str(plan).strip().lower() if plan is not None else ""


def plan_level(plan: PlanLike) -> int:
    """Position in the plan order; unknown or missing plans are level 0."""
    return PLAN_LEVELS.get(plan_label(plan), 0)


def required_plan_level(required_plan: PlanLike) -> int:
    """
    Level of a plan requirement.

    Requirements come from code, not data, so an unknown one is a bug.

    Raises:
        ValueError: If `required_plan` is not a known plan
    """
    return PLAN_LEVELS[SubscriptionPlan(plan_label(required_plan)).value]


def meets_plan(plan: PlanLike, required_plan: PlanLike) -> bool:
    """True when `plan` is at or above `required_plan`."""
    return plan_level(plan) >= required_plan_level(required_plan)


def _as_utc(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def is_entitled(subscription: Subscription, now: Optional[datetime] = None) -> bool:
    """
    True iff the subscription is active, or on trial with a `trial_end`
    strictly after `now`. A trial without `trial_end` is not entitled.
    """
    if subscription.status == SubscriptionStatus.ACTIVE.value:
        return True
    if subscription.status != SubscriptionStatus.TRIAL.value:
        return False
    if subscription.trial_end is None:
        return False
    compare_at = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    return _as_utc(subscription.trial_end) > compare_at


def decide(
    subscription: Subscription,
    required_plan: PlanLike,
    now: Optional[datetime] = None,
) -> AccessDecision:
    """
    Decide access to a capability gated at `required_plan`.

    Expiry is checked first: a lapsed subscription is denied as
    "expired" even when its plan would have been high enough.
    """
    required = SubscriptionPlan(plan_label(required_plan)).value
    entitled = is_entitled(subscription, now)
    if not entitled:
        return AccessDecision.deny(
            DenialReason.EXPIRED,
            required_plan=required,
            plan=subscription.plan,
            entitled=False,
        )
    if not meets_plan(subscription.plan, required):
        return AccessDecision.deny(
            DenialReason.INSUFFICIENT_PLAN,
            required_plan=required,
            plan=subscription.plan,
            entitled=True,
        )
    return AccessDecision.allow(required_plan=required, plan=subscription.plan)
