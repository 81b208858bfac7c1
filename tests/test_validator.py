"""
Tests for the access validator.

The validator must fail closed: no user, no subscription or a broken
backend all mean "no", and auditing can never change the answer.
"""

from datetime import datetime, timezone

import pytest

from family_finance.access import AccessValidator, DenialReason
from family_finance.auth import Session
from family_finance.backend import BackendError
from family_finance.errors import (
    AuthenticationMissingError,
    EntitlementDeniedError,
    SubscriptionFetchError,
)
from family_finance.models import SubscriptionPlan

from conftest import USER_ID

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def validator(backend, notifier, audit_logger):
    return AccessValidator(backend, notifier, audit_logger, clock=lambda: NOW)


class TestValidateAccess:
    """Tests for validate_access."""

    @pytest.mark.asyncio
    async def test_no_user_is_denied_without_backend_call(self, validator, backend, anonymous):
        assert await validator.validate_access(anonymous, "free") is False
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_loading_session_is_denied_without_backend_call(self, validator, backend):
        assert await validator.validate_access(Session.pending(), "free") is False
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_active_family_plan_is_allowed(self, validator, backend, session, make_subscription, notifier):
        await backend.insert("subscriptions", make_subscription(plan="family"))

        assert await validator.validate_access(session, SubscriptionPlan.PREMIUM) is True
        assert notifier.pending == []

    @pytest.mark.asyncio
    async def test_subscription_read_is_scoped_to_user(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(plan="family"))
        await validator.validate_access(session, "free")

        reads = backend.calls_for("subscriptions", "select")
        assert [c.filters for c in reads] == [{"user_id": USER_ID}]

    @pytest.mark.asyncio
    async def test_missing_subscription_is_denied_with_generic_error(self, validator, session, notifier):
        assert await validator.validate_access(session, "free") is False

        [notification] = notifier.pending
        assert notification.is_error
        assert notification.title == "Validation error"

    @pytest.mark.asyncio
    async def test_backend_failure_is_denied(self, validator, backend, session, make_subscription, notifier):
        await backend.insert("subscriptions", make_subscription(plan="family"))
        backend.fail_on("subscriptions", "select")

        assert await validator.validate_access(session, "free") is False
        assert len(notifier.pending) == 1

    @pytest.mark.asyncio
    async def test_malformed_row_is_denied(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(trial_end="not a date"))

        assert await validator.validate_access(session, "free") is False

    @pytest.mark.asyncio
    async def test_duplicate_rows_are_denied(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(plan="family"))
        await backend.insert("subscriptions", make_subscription(plan="family"))

        assert await validator.validate_access(session, "free") is False

    @pytest.mark.asyncio
    async def test_expired_notification(self, validator, backend, session, make_subscription, notifier):
        await backend.insert("subscriptions", make_subscription(
            plan="premium", status="trial", trial_end="2000-01-01",
        ))

        assert await validator.validate_access(session, "free") is False
        assert notifier.pending[0].title == "Subscription expired"

    @pytest.mark.asyncio
    async def test_insufficient_plan_notification_names_plan(
        self, validator, backend, session, make_subscription, notifier,
    ):
        await backend.insert("subscriptions", make_subscription(
            plan="free", status="trial", trial_end="2099-01-01",
        ))

        assert await validator.validate_access(session, "premium") is False
        assert "premium" in notifier.pending[0].description

    @pytest.mark.asyncio
    async def test_decisions_are_audited(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(plan="free"))
        await validator.validate_access(session, "free")
        await validator.validate_access(session, "family")

        actions = [r["details"]["event_type"] for r in backend.rows("admin_audit_logs")]
        assert actions == ["access_granted", "access_denied"]

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_change_result(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(plan="family"))
        backend.fail_on("admin_audit_logs", "insert")

        assert await validator.validate_access(session, "family") is True

    @pytest.mark.asyncio
    async def test_not_loading_after_check(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription())
        await validator.validate_access(session, "free")
        assert validator.validation_loading is False


class TestCheck:
    """Tests for the strict variant."""

    @pytest.mark.asyncio
    async def test_raises_without_user(self, validator, anonymous):
        with pytest.raises(AuthenticationMissingError):
            await validator.check(anonymous, "free")

    @pytest.mark.asyncio
    async def test_raises_when_subscription_missing(self, validator, session):
        with pytest.raises(SubscriptionFetchError):
            await validator.check(session, "free")

    @pytest.mark.asyncio
    async def test_raises_with_reason(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(plan="premium"))

        with pytest.raises(EntitlementDeniedError) as exc_info:
            await validator.check(session, "family")

        assert exc_info.value.reason == DenialReason.INSUFFICIENT_PLAN.value
        assert exc_info.value.required_plan == "family"

    @pytest.mark.asyncio
    async def test_evaluate_reports_reason(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(status="canceled"))

        decision = await validator.evaluate(session, "free")
        assert decision.reason == DenialReason.EXPIRED

    @pytest.mark.asyncio
    async def test_check_raises_for_unknown_requirement(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(plan="family"))

        with pytest.raises(ValueError):
            await validator.check(session, "platinum")

    @pytest.mark.asyncio
    async def test_unknown_requirement_is_denied_not_raised(
        self, validator, backend, session, make_subscription, notifier
    ):
        await backend.insert("subscriptions", make_subscription(plan="family"))

        assert await validator.validate_access(session, "platinum") is False
        assert [n.title for n in notifier.drain()] == ["Validation error"]
        assert [r["details"]["event_type"] for r in backend.rows("admin_audit_logs")] == ["access_denied"]


class TestHasAccess:
    """Tests for the quiet has_access check."""

    @pytest.mark.asyncio
    async def test_allowed(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(plan="premium"))

        assert await validator.has_access(session, SubscriptionPlan.PREMIUM) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [{"plan": "free"}, {"plan": "family", "status": "expired"}])
    async def test_denied_without_notification_or_audit(
        self, validator, backend, session, make_subscription, notifier, overrides
    ):
        await backend.insert("subscriptions", make_subscription(**overrides))

        assert await validator.has_access(session, SubscriptionPlan.PREMIUM) is False
        assert notifier.pending == []
        assert backend.rows("admin_audit_logs") == []

    @pytest.mark.asyncio
    async def test_missing_subscription_and_no_user(self, validator, session, anonymous, notifier):
        assert await validator.has_access(session, "free") is False
        assert await validator.has_access(anonymous, "free") is False
        assert notifier.pending == []


class TestLogAccess:
    """Tests for log_access and run_gated."""

    @pytest.mark.asyncio
    async def test_log_access_writes_audit_row(self, validator, backend, session):
        await validator.log_access(session, "liabilities", "view")

        [row] = backend.rows("admin_audit_logs")
        assert row["admin_user_id"] == USER_ID
        assert row["action"] == "view_liabilities"
        assert row["details"]["resource"] == "liabilities"
        assert row["details"]["action"] == "view"

    @pytest.mark.asyncio
    async def test_log_access_swallows_storage_failure(self, validator, backend, session):
        backend.fail_on("admin_audit_logs", "insert", BackendError("down"))

        await validator.log_access(session, "liabilities", "view")

    @pytest.mark.asyncio
    async def test_log_access_without_user_writes_nothing(self, validator, backend, anonymous):
        await validator.log_access(anonymous, "liabilities", "view")
        assert backend.rows("admin_audit_logs") == []

    @pytest.mark.asyncio
    async def test_run_gated_returns_result_when_allowed(self, validator, backend, session, make_subscription):
        await backend.insert("subscriptions", make_subscription(plan="premium"))
        backend.fail_on("admin_audit_logs", "insert")

        async def operation():
            return "report"

        assert await validator.run_gated(session, "premium", "reports", "export", operation) == "report"

    @pytest.mark.asyncio
    async def test_run_gated_skips_operation_when_denied(self, validator, session):
        called = []

        async def operation():
            called.append(True)

        assert await validator.run_gated(session, "premium", "reports", "export", operation) is None
        assert called == []
