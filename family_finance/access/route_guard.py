"""
Route guard.

Decides whether a page may render given the authentication state and,
for pages that need a subscription, whether the user is entitled.

    Loading ──(no user)──────────────────────────> Unauthenticated  -> landing
       │
       ├──(user, subscription needed, not entitled)> InsufficientPlan -> pricing
       │
       └──(user, requirement met or none)─────────> Authorized       -> render

The decision is recomputed whenever the session, the entitlement or the
page's requirement changes. Redirect states render nothing.
"""

from datetime import datetime
from enum import Enum
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from family_finance.access.entitlement import is_entitled
from family_finance.access.validator import AccessValidator
from family_finance.auth import Session
from family_finance.config import get_settings
from family_finance.errors import SubscriptionFetchError

logger = structlog.get_logger(__name__)


class RouteState(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    INSUFFICIENT_PLAN = "authenticated_insufficient_plan"
    AUTHORIZED = "authorized"


class RouteDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: RouteState
    redirect_to: Optional[str] = None

    @property
    def renders(self) -> bool:
        return self.state == RouteState.AUTHORIZED


def evaluate_route(
    session: Session,
    require_subscription: bool = False,
    entitled: Optional[bool] = None,
    landing_route: Optional[str] = None,
    pricing_route: Optional[str] = None,
) -> RouteDecision:
    """
    Pure route decision.

    `entitled` is None while the subscription has not been resolved
    yet; a page that needs a subscription stays in Loading until it is.
    """
    if session.loading:
        return RouteDecision(state=RouteState.LOADING)

    settings = get_settings().access
    if session.user is None:
        return RouteDecision(
            state=RouteState.UNAUTHENTICATED,
            redirect_to=landing_route or settings.landing_route,
        )

    if require_subscription:
        if entitled is None:
            return RouteDecision(state=RouteState.LOADING)
        if not entitled:
            return RouteDecision(
                state=RouteState.INSUFFICIENT_PLAN,
                redirect_to=pricing_route or settings.pricing_route,
            )

    return RouteDecision(state=RouteState.AUTHORIZED)


class RouteGuard:
    """
    Stateful wrapper around `evaluate_route` for one page.

    `navigate` is called once each time the guard enters a redirect
    state, not on every re-evaluation.
    """

    def __init__(
        self,
        require_subscription: bool = False,
        navigate: Optional[Callable[[str], None]] = None,
        landing_route: Optional[str] = None,
        pricing_route: Optional[str] = None,
    ):
        self._require_subscription = require_subscription
        self._navigate = navigate
        self._landing_route = landing_route
        self._pricing_route = pricing_route
        self._session = Session.pending()
        self._entitled: Optional[bool] = None
        self._decision = RouteDecision(state=RouteState.LOADING)

    @property
    def decision(self) -> RouteDecision:
        return self._decision

    @property
    def require_subscription(self) -> bool:
        return self._require_subscription

    def set_requirement(self, require_subscription: bool) -> RouteDecision:
        self._require_subscription = require_subscription
        return self._reevaluate()

    def update(
        self,
        session: Optional[Session] = None,
        entitled: Optional[bool] = None,
    ) -> RouteDecision:
        """Feed new inputs and re-evaluate. Omitted inputs keep their value."""
        if session is not None:
            if session.user_id != self._session.user_id:
                # entitlement belonged to the previous user
                self._entitled = None
            self._session = session
        if entitled is not None:
            self._entitled = entitled
        return self._reevaluate()

    async def resolve(
        self,
        session: Session,
        validator: AccessValidator,
        now: Optional[datetime] = None,
    ) -> RouteDecision:
        """
        Look up the entitlement for `session` when the page needs one,
        then re-evaluate. An unreadable subscription counts as not
        entitled.
        """
        entitled = None
        if self._require_subscription and session.user is not None and not session.loading:
            try:
                subscription = await validator.fetch_subscription(session.user.id)
                entitled = is_entitled(subscription, now)
            except SubscriptionFetchError as e:
                logger.warning("route_entitlement_unavailable", user_id=session.user.id, error=str(e))
                entitled = False
        return self.update(session=session, entitled=entitled)

    def _reevaluate(self) -> RouteDecision:
        previous = self._decision
        self._decision = evaluate_route(
            self._session,
            require_subscription=self._require_subscription,
            entitled=self._entitled,
            landing_route=self._landing_route,
            pricing_route=self._pricing_route,
        )
        if (
            self._decision.redirect_to
            and self._navigate is not None
            and self._decision != previous
        ):
            self._navigate(self._decision.redirect_to)
        return self._decision
