"""Tests for the route guard state machine."""

import pytest

from family_finance.access import AccessValidator, RouteGuard, RouteState, evaluate_route
from family_finance.auth import Session, User


class TestEvaluateRoute:
    """Tests for the pure decision."""

    def test_loading_renders_nothing(self):
        decision = evaluate_route(Session.pending(), require_subscription=True)
        assert decision.state == RouteState.LOADING
        assert decision.redirect_to is None
        assert decision.renders is False

    def test_no_user_redirects_to_landing(self, anonymous):
        decision = evaluate_route(anonymous)
        assert decision.state == RouteState.UNAUTHENTICATED
        assert decision.redirect_to == "/landing"
        assert decision.renders is False

    def test_user_without_requirement_is_authorized(self, session):
        decision = evaluate_route(session, require_subscription=False, entitled=False)
        assert decision.state == RouteState.AUTHORIZED
        assert decision.renders is True

    def test_not_entitled_redirects_to_pricing(self, session):
        decision = evaluate_route(session, require_subscription=True, entitled=False)
        assert decision.state == RouteState.INSUFFICIENT_PLAN
        assert decision.redirect_to == "/pricing"
        assert decision.renders is False

    def test_entitled_is_authorized(self, session):
        decision = evaluate_route(session, require_subscription=True, entitled=True)
        assert decision.state == RouteState.AUTHORIZED

    def test_unknown_entitlement_keeps_loading(self, session):
        decision = evaluate_route(session, require_subscription=True, entitled=None)
        assert decision.state == RouteState.LOADING

    def test_custom_routes(self, anonymous, session):
        assert evaluate_route(anonymous, landing_route="/welcome").redirect_to == "/welcome"
        decision = evaluate_route(session, True, False, pricing_route="/plans")
        assert decision.redirect_to == "/plans"


class TestRouteGuard:
    """Tests for the stateful guard."""

    def test_starts_loading(self):
        assert RouteGuard().decision.state == RouteState.LOADING

    def test_navigates_once_per_redirect(self, anonymous):
        visited = []
        guard = RouteGuard(navigate=visited.append)

        guard.update(session=anonymous)
        guard.update(session=anonymous)

        assert visited == ["/landing"]

    def test_reevaluates_when_entitlement_changes(self, session):
        visited = []
        guard = RouteGuard(require_subscription=True, navigate=visited.append)

        assert guard.update(session=session).state == RouteState.LOADING
        assert guard.update(entitled=False).state == RouteState.INSUFFICIENT_PLAN
        assert guard.update(entitled=True).state == RouteState.AUTHORIZED
        assert visited == ["/pricing"]

    def test_reevaluates_when_requirement_changes(self, session):
        guard = RouteGuard(require_subscription=False)
        guard.update(session=session, entitled=False)
        assert guard.decision.state == RouteState.AUTHORIZED

        assert guard.set_requirement(True).state == RouteState.INSUFFICIENT_PLAN

    def test_switching_user_forgets_entitlement(self, session):
        guard = RouteGuard(require_subscription=True)
        guard.update(session=session, entitled=True)

        other = Session.for_user(User(id="someone-else"))
        assert guard.update(session=other).state == RouteState.LOADING

    def test_sign_out_redirects(self, session, anonymous):
        visited = []
        guard = RouteGuard(navigate=visited.append)
        guard.update(session=session)

        guard.update(session=anonymous)

        assert guard.decision.state == RouteState.UNAUTHENTICATED
        assert visited == ["/landing"]


class TestResolve:
    """Tests for resolving entitlement through the validator."""

    @pytest.fixture
    def validator(self, backend, notifier):
        return AccessValidator(backend, notifier)

    @pytest.mark.asyncio
    async def test_active_subscription_is_authorized(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(plan="free", status="active"))

        decision = await RouteGuard(require_subscription=True).resolve(session, validator)

        assert decision.state == RouteState.AUTHORIZED

    @pytest.mark.asyncio
    async def test_expired_trial_goes_to_pricing(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(status="trial", trial_end="2000-01-01"))

        decision = await RouteGuard(require_subscription=True).resolve(session, validator)

        assert decision.state == RouteState.INSUFFICIENT_PLAN

    @pytest.mark.asyncio
    async def test_unreadable_subscription_fails_closed(self, validator, backend, session):
        backend.fail_on("subscriptions", "select")

        decision = await RouteGuard(require_subscription=True).resolve(session, validator)

        assert decision.state == RouteState.INSUFFICIENT_PLAN

    @pytest.mark.asyncio
    async def test_no_lookup_when_not_required(self, validator, backend, session):
        decision = await RouteGuard(require_subscription=False).resolve(session, validator)

        assert decision.state == RouteState.AUTHORIZED
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_no_lookup_without_user(self, validator, backend, anonymous):
        decision = await RouteGuard(require_subscription=True).resolve(anonymous, validator)

        assert decision.state == RouteState.UNAUTHENTICATED
        assert backend.calls == []
