"""Admin area package."""

from family_finance.admin.service import ADMIN_ROLE, AdminService, SubscriptionUpdate

__all__ = ["ADMIN_ROLE", "AdminService", "SubscriptionUpdate"]
