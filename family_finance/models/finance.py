"""
Core Data Models for Family Finance

These mirror the backend tables the repositories read and write.
Row models describe what the backend returns; *Data models describe
what a caller may send. Owning keys (`user_id`, `admin_user_id`) are
never part of a *Data model: repositories stamp them from the session.

DESIGN DECISION: Monetary values are Decimal end to end. Rows are sent
to the backend in JSON mode, so amounts travel as strings and come back
through the same models.
"""

import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class CategoryType(str, Enum):
    """Which transactions a category applies to."""
    INCOME = "income"
    EXPENSE = "expense"
    BOTH = "both"


class FamilyRole(str, Enum):
    """Role of a member inside the family."""
    PAI = "pai"
    MAE = "mae"
    FILHO = "filho"
    FILHA = "filha"
    OUTRO = "outro"


# =============================================================================
# ROW MODELS
# =============================================================================

class BackendRow(BaseModel):
    """Columns every scoped table carries."""
    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Family(BackendRow):
    name: str
    admin_user_id: str


class FamilyMember(BackendRow):
    user_id: str
    name: str
    role: str
    avatar_url: Optional[str] = None
    permissions: list[str] = Field(default_factory=list)


class Category(BackendRow):
    user_id: str
    name: str
    color: str = "#6366f1"
    emoji: str = "💰"
    type: CategoryType
    is_favorite: bool = False


class Transaction(BackendRow):
    user_id: str
    type: TransactionType
    description: str
    amount: Decimal
    category: Optional[str] = None
    date: dt.date
    family_member_id: Optional[str] = None


class Liability(BackendRow):
    user_id: str
    name: str
    description: Optional[str] = None
    total_amount: Decimal
    remaining_amount: Decimal
    interest_rate: Optional[Decimal] = None
    due_date: Optional[date] = None
    monthly_payment: Optional[Decimal] = None
    category: Optional[str] = None
    creditor: Optional[str] = None


class Asset(BackendRow):
    user_id: str
    name: str
    description: Optional[str] = None
    value: Decimal
    category: Optional[str] = None
    purchase_date: Optional[date] = None
    depreciation_rate: Optional[Decimal] = None
    current_value: Optional[Decimal] = None


# =============================================================================
# INPUT MODELS
# =============================================================================

class CreateFamilyData(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)


class CreateFamilyMemberData(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    role: str = Field(..., min_length=1)
    avatar_url: Optional[str] = None
    permissions: list[str] = Field(default_factory=list)


class CreateCategoryData(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = None
    emoji: Optional[str] = None
    type: CategoryType
    is_favorite: bool = False


class CreateTransactionData(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType
    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal
    category: Optional[str] = None
    date: Optional[dt.date] = None
    family_member_id: Optional[str] = None


class CreateLiabilityData(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    total_amount: Decimal
    remaining_amount: Decimal
    interest_rate: Optional[Decimal] = None
    due_date: Optional[date] = None
    monthly_payment: Optional[Decimal] = None
    category: Optional[str] = None
    creditor: Optional[str] = None


class CreateAssetData(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    value: Decimal
    category: Optional[str] = None
    purchase_date: Optional[date] = None
    depreciation_rate: Optional[Decimal] = None
    current_value: Optional[Decimal] = None


# =============================================================================
# DERIVED VALUES
# =============================================================================

class NetWorth(BaseModel):
    """Result of the `calculate_net_worth` procedure."""

    total_assets: Decimal = Decimal("0")
    total_liabilities: Decimal = Decimal("0")
    net_worth: Decimal = Decimal("0")


class MonthlyStats(BaseModel):
    """Income, expenses and balance for one calendar month."""

    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
