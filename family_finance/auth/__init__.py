"""Authentication session package."""

from family_finance.auth.session import Session, SessionStore, User

__all__ = ["Session", "SessionStore", "User"]
