"""
Data Models Package

This package contains all Pydantic models used in Family Finance.
Everything read from or written to the backend passes through these.
"""

from family_finance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from family_finance.models.finance import (
    Asset,
    Category,
    CategoryType,
    CreateAssetData,
    CreateCategoryData,
    CreateFamilyData,
    CreateFamilyMemberData,
    CreateLiabilityData,
    CreateTransactionData,
    Family,
    FamilyMember,
    FamilyRole,
    Liability,
    MonthlyStats,
    NetWorth,
    Transaction,
    TransactionType,
)
from family_finance.models.subscription import (
    PLAN_LEVELS,
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
)

__all__ = [
    # Finance models
    "Asset",
    "Category",
    "CategoryType",
    "CreateAssetData",
    "CreateCategoryData",
    "CreateFamilyData",
    "CreateFamilyMemberData",
    "CreateLiabilityData",
    "CreateTransactionData",
    "Family",
    "FamilyMember",
    "FamilyRole",
    "Liability",
    "MonthlyStats",
    "NetWorth",
    "Transaction",
    "TransactionType",
    # Subscription models
    "PLAN_LEVELS",
    "Subscription",
    "SubscriptionPlan",
    "SubscriptionStatus",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
