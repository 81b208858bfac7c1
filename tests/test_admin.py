"""Tests for the admin area service."""

from datetime import datetime, timedelta, timezone

import pytest

from family_finance.admin import AdminService, SubscriptionUpdate
from family_finance.models import Subscription

from conftest import OTHER_USER_ID, USER_ID

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def admin(backend, notifier, audit_logger):
    return AdminService(backend, notifier, audit_logger, clock=lambda: NOW)


async def make_admin(backend, user_id=USER_ID):
    await backend.insert("user_roles", {"user_id": user_id, "role": "admin"})


class TestAdminAccess:
    """Tests for the admin role check."""

    @pytest.mark.asyncio
    async def test_is_admin(self, admin, backend, session):
        assert await admin.is_admin(session) is False
        await make_admin(backend)
        assert await admin.is_admin(session) is True

    @pytest.mark.asyncio
    async def test_other_roles_are_not_admin(self, admin, backend, session):
        await backend.insert("user_roles", {"user_id": USER_ID, "role": "support"})
        assert await admin.is_admin(session) is False

    @pytest.mark.asyncio
    async def test_anonymous_is_not_admin(self, admin, backend, anonymous):
        assert await admin.is_admin(anonymous) is False
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_lookup_failure_is_not_admin(self, admin, backend, session):
        await make_admin(backend)
        backend.fail_on("user_roles", "select")
        assert await admin.is_admin(session) is False

    @pytest.mark.asyncio
    async def test_non_admin_cannot_list(self, admin, backend, session, notifier):
        await backend.insert("subscriptions", {"user_id": OTHER_USER_ID, "plan": "free", "status": "trial"})

        assert await admin.list_subscriptions(session) == []
        assert backend.calls_for("subscriptions", "select") == []
        assert notifier.pending[0].title == "Access denied"

    @pytest.mark.asyncio
    async def test_non_admin_cannot_update(self, admin, backend, session):
        await backend.insert("subscriptions", {"user_id": OTHER_USER_ID, "plan": "free", "status": "trial"})

        assert await admin.grant_trial(session, OTHER_USER_ID) is False
        assert backend.rows("subscriptions")[0]["status"] == "trial"
        assert backend.calls_for("subscriptions", "update") == []


class TestSubscriptionManagement:
    """Tests for subscription changes."""

    @pytest.mark.asyncio
    async def test_list_subscriptions(self, admin, backend, session):
        await make_admin(backend)
        await backend.insert("subscriptions", {"user_id": OTHER_USER_ID, "plan": "premium", "status": "active"})

        [subscription] = await admin.list_subscriptions(session)

        assert isinstance(subscription, Subscription)
        assert subscription.plan == "premium"

    @pytest.mark.asyncio
    async def test_update_subscription(self, admin, backend, session, notifier):
        await make_admin(backend)
        await backend.insert("subscriptions", {"user_id": OTHER_USER_ID, "plan": "free", "status": "trial"})

        changed = await admin.update_subscription(
            session, OTHER_USER_ID, SubscriptionUpdate(plan="family", status="active"),
        )

        assert changed is True
        row = backend.rows("subscriptions")[0]
        assert (row["plan"], row["status"]) == ("family", "active")
        assert notifier.pending[-1].title == "Subscription updated"

    @pytest.mark.asyncio
    async def test_update_is_audited_with_admin_as_actor(self, admin, backend, session):
        await make_admin(backend)
        await backend.insert("subscriptions", {"user_id": OTHER_USER_ID, "plan": "free", "status": "trial"})

        await admin.update_subscription(session, OTHER_USER_ID, SubscriptionUpdate(status="expired"))

        [audit] = backend.rows("admin_audit_logs")
        assert audit["admin_user_id"] == USER_ID
        assert audit["action"] == "update_subscription"
        assert audit["details"]["changes"] == {"status": "expired"}

    @pytest.mark.asyncio
    async def test_grant_trial(self, admin, backend, session):
        await make_admin(backend)
        await backend.insert("subscriptions", {"user_id": OTHER_USER_ID, "plan": "free", "status": "expired"})

        assert await admin.grant_trial(session, OTHER_USER_ID) is True

        subscription = Subscription.model_validate(backend.rows("subscriptions")[0])
        assert subscription.status == "trial"
        assert subscription.trial_end == NOW + timedelta(days=7)

    @pytest.mark.asyncio
    async def test_activate(self, admin, backend, session):
        await make_admin(backend)
        await backend.insert("subscriptions", {"user_id": OTHER_USER_ID, "plan": "free", "status": "trial"})

        assert await admin.activate(session, OTHER_USER_ID, "premium", days=30) is True

        subscription = Subscription.model_validate(backend.rows("subscriptions")[0])
        assert (subscription.plan, subscription.status) == ("premium", "active")
        assert subscription.current_period_end == NOW + timedelta(days=30)

    @pytest.mark.asyncio
    async def test_update_unknown_user(self, admin, backend, session, notifier):
        await make_admin(backend)

        assert await admin.grant_trial(session, "nobody") is False
        assert notifier.pending[-1].is_error

    @pytest.mark.asyncio
    async def test_empty_update_is_rejected(self, admin, backend, session):
        await make_admin(backend)

        assert await admin.update_subscription(session, OTHER_USER_ID, SubscriptionUpdate()) is False
        assert backend.calls_for("subscriptions", "update") == []

    @pytest.mark.asyncio
    async def test_backend_failure(self, admin, backend, session, notifier):
        await make_admin(backend)
        backend.fail_on("subscriptions", "update")

        assert await admin.grant_trial(session, OTHER_USER_ID) is False
        assert notifier.pending[-1].title == "Error updating subscription"


class TestRoles:
    """Tests for role management."""

    @pytest.mark.asyncio
    async def test_grant_and_revoke(self, admin, backend, session):
        await make_admin(backend)

        assert await admin.grant_role(session, OTHER_USER_ID) is True
        assert {"user_id": OTHER_USER_ID, "role": "admin"}.items() <= backend.rows("user_roles")[1].items()

        assert await admin.revoke_role(session, OTHER_USER_ID) is True
        assert [r["user_id"] for r in backend.rows("user_roles")] == [USER_ID]

        actions = [r["action"] for r in backend.rows("admin_audit_logs")]
        assert actions == ["grant_role", "revoke_role"]

    @pytest.mark.asyncio
    async def test_grant_is_idempotent(self, admin, backend, session):
        await make_admin(backend)

        await admin.grant_role(session, OTHER_USER_ID)
        await admin.grant_role(session, OTHER_USER_ID)

        assert len(backend.rows("user_roles")) == 2

    @pytest.mark.asyncio
    async def test_revoke_missing_role(self, admin, backend, session):
        await make_admin(backend)
        assert await admin.revoke_role(session, OTHER_USER_ID) is False

    @pytest.mark.asyncio
    async def test_non_admin_cannot_grant(self, admin, backend, session):
        assert await admin.grant_role(session, USER_ID) is False
        assert backend.rows("user_roles") == []
