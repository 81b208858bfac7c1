"""Subscription access control package."""

from family_finance.access.entitlement import (
    AccessDecision,
    DenialReason,
    decide,
    is_entitled,
    meets_plan,
    plan_label,
    plan_level,
)
from family_finance.access.route_guard import (
    RouteDecision,
    RouteGuard,
    RouteState,
    evaluate_route,
)
from family_finance.access.validator import AccessValidator

__all__ = [
    # Entitlement rules
    "AccessDecision",
    "DenialReason",
    "decide",
    "is_entitled",
    "meets_plan",
    "plan_label",
    "plan_level",
    # Validator
    "AccessValidator",
    # Route guard
    "RouteDecision",
    "RouteGuard",
    "RouteState",
    "evaluate_route",
]
