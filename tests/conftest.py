"""
Shared fixtures.

Every test runs against the in-memory backend, which records each call
so scoping predicates can be asserted directly.
"""

import pytest

from family_finance.audit import AuditLogger, BackendAuditStorage
from family_finance.auth import Session, User
from family_finance.backend import InMemoryBackend
from family_finance.notifications import Notifier

USER_ID = "11111111-1111-4111-8111-111111111111"
OTHER_USER_ID = "22222222-2222-4222-8222-222222222222"
FAMILY_ID = "33333333-3333-4333-8333-333333333333"


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def audit_logger(backend):
    return AuditLogger(BackendAuditStorage(backend))


@pytest.fixture
def user():
    return User(id=USER_ID, email="ana@example.com", full_name="Ana Silva")


@pytest.fixture
def session(user):
    return Session.for_user(user, family_id=FAMILY_ID)


@pytest.fixture
def other_session():
    return Session.for_user(User(id=OTHER_USER_ID, email="bruno@example.com"))


@pytest.fixture
def anonymous():
    return Session.anonymous()


@pytest.fixture
def make_subscription():
    """Build a subscription row; keyword arguments override the defaults."""
    def _make(**overrides):
        row = {
            "user_id": USER_ID,
            "plan": "free",
            "status": "active",
            "trial_end": None,
            "current_period_end": None,
        }
        row.update(overrides)
        return row
    return _make
