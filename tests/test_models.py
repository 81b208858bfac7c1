"""
Tests for Family Finance models

Test strategy:
1. Unit tests for individual components (models, session, notifier)
2. Services are exercised against the in-memory backend elsewhere
3. No real backend calls in tests
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from family_finance.auth import Session, SessionStore, User
from family_finance.models import (
    Category,
    CategoryType,
    CreateCategoryData,
    CreateFamilyMemberData,
    Subscription,
    SubscriptionPlan,
    Transaction,
)
from family_finance.notifications import NotificationVariant, Notifier


class TestSubscriptionModel:
    """Tests for subscription parsing."""

    def test_date_only_trial_end_is_utc_midnight(self):
        subscription = Subscription(user_id="u1", status="trial", trial_end="2099-01-01")
        assert subscription.trial_end == datetime(2099, 1, 1, tzinfo=timezone.utc)

    def test_blank_timestamps_are_none(self):
        subscription = Subscription(user_id="u1", trial_end="", current_period_end=None)
        assert subscription.trial_end is None
        assert subscription.current_period_end is None

    def test_naive_timestamps_are_utc(self):
        subscription = Subscription(user_id="u1", trial_end="2030-05-01T10:00:00")
        assert subscription.trial_end.tzinfo == timezone.utc

    def test_labels_are_normalized(self):
        subscription = Subscription(user_id="u1", plan=" Premium ", status="ACTIVE")
        assert subscription.plan == "premium"
        assert subscription.status == "active"

    def test_enum_values_are_accepted(self):
        assert Subscription(user_id="u1", plan=SubscriptionPlan.FAMILY).plan == "family"

    def test_unknown_plan_still_loads(self):
        assert Subscription(user_id="u1", plan="gold").plan == "gold"

    def test_extra_columns_are_ignored(self):
        subscription = Subscription.model_validate({"user_id": "u1", "id": "x", "created_at": "2026-01-01"})
        assert subscription.user_id == "u1"

    def test_user_id_required(self):
        with pytest.raises(ValueError):
            Subscription(user_id="")


class TestFinanceModels:
    """Tests for finance row and input models."""

    def test_category_defaults(self):
        category = Category(id="c1", user_id="u1", name="Food", type="expense")
        assert category.color == "#6366f1"
        assert category.emoji == "💰"
        assert category.is_favorite is False
        assert category.type == CategoryType.EXPENSE

    def test_transaction_parses_row(self):
        transaction = Transaction.model_validate({
            "id": "t1",
            "user_id": "u1",
            "type": "income",
            "description": "Salary",
            "amount": "2500.10",
            "date": "2026-06-01",
            "created_at": "2026-06-01T08:00:00+00:00",
        })
        assert transaction.amount == Decimal("2500.10")
        assert transaction.date == date(2026, 6, 1)

    def test_input_strips_whitespace(self):
        assert CreateFamilyMemberData(name="  Ana  ", role="mae").name == "Ana"

    def test_input_rejects_long_category_name(self):
        with pytest.raises(ValueError):
            CreateCategoryData(name="x" * 51, type="both")


class TestSession:
    """Tests for the explicit session."""

    def test_states(self):
        assert Session.pending().is_authenticated is False
        assert Session.anonymous().is_authenticated is False
        assert Session.for_user(User(id="u1")).is_authenticated is True
        assert Session.anonymous().user_id is None

    def test_store_swaps_sessions(self):
        store = SessionStore()
        assert store.current.loading is True

        store.sign_in(User(id="u1"))
        assert store.current.user_id == "u1"

        store.join_family("f1")
        assert store.current.family_id == "f1"

        store.sign_out()
        assert store.current.user is None
        assert store.current.loading is False


class TestNotifier:
    """Tests for user-facing notifications."""

    def test_keeps_order_and_drains(self):
        notifier = Notifier()
        notifier.success("Saved")
        notifier.error("Failed", "Try again")

        drained = notifier.drain()

        assert [n.title for n in drained] == ["Saved", "Failed"]
        assert drained[1].variant == NotificationVariant.DESTRUCTIVE
        assert drained[1].is_error
        assert notifier.pending == []

    def test_bounded(self):
        notifier = Notifier(max_pending=2)
        for title in ("a", "b", "c"):
            notifier.success(title)
        assert [n.title for n in notifier.pending] == ["b", "c"]
