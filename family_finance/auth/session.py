"""
Explicit session context.

The current user and the auth-loading flag are passed to every service
that needs them instead of being read from ambient state. A service
never looks anything up about "who is calling" on its own.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """Authenticated identity as issued by the backend's auth service."""
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None


class Session(BaseModel):
    """
    What the caller knows about authentication right now.

    `loading` is True until the auth provider has resolved; while it is
    True, `user` means nothing.
    """
    model_config = ConfigDict(frozen=True)

    user: Optional[User] = None
    loading: bool = False
    family_id: Optional[str] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def is_authenticated(self) -> bool:
        return not self.loading and self.user is not None

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()

    @classmethod
    def pending(cls) -> "Session":
        return cls(loading=True)

    @classmethod
    def for_user(cls, user: User, family_id: Optional[str] = None) -> "Session":
        return cls(user=user, family_id=family_id)


class SessionStore:
    """
    Holds the current session for one UI instance.

    Sessions are immutable; signing in or out swaps the whole object.
    """

    def __init__(self, session: Optional[Session] = None):
        self._session = session or Session.pending()

    @property
    def current(self) -> Session:
        return self._session

    def sign_in(self, user: User, family_id: Optional[str] = None) -> Session:
        self._session = Session.for_user(user, family_id)
        return self._session

    def sign_out(self) -> Session:
        self._session = Session.anonymous()
        return self._session

    def join_family(self, family_id: str) -> Session:
        self._session = self._session.model_copy(update={"family_id": family_id})
        return self._session
