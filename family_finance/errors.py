"""
Error taxonomy for Family Finance.

These never reach presentation: the access validator and the
repositories catch them at their public boundary and turn them into a
notification plus a boolean or empty result.
"""

from typing import Optional


class FamilyFinanceError(Exception):
    """Base exception for the package."""
    pass


class AuthenticationMissingError(FamilyFinanceError):
    """No current user. Nothing is sent to the backend."""

    def __init__(self, message: str = "No authenticated user"):
        super().__init__(message)


class SubscriptionFetchError(FamilyFinanceError):
    """The subscription row could not be read, or does not exist."""
    pass


class EntitlementDeniedError(FamilyFinanceError):
    """The subscription does not grant the required plan."""

    def __init__(self, reason: str, required_plan: str, plan: Optional[str] = None):
        self.reason = reason
        self.required_plan = required_plan
        self.plan = plan
        super().__init__(f"Access denied ({reason}); requires plan {required_plan}")


class RepositoryError(FamilyFinanceError):
    """A backend call made on behalf of a repository failed."""

    def __init__(self, operation: str, table: str, message: str):
        self.operation = operation
        self.table = table
        super().__init__(f"{operation} on {table} failed: {message}")


class AuditLogError(FamilyFinanceError):
    """An audit row could not be written."""
    pass
