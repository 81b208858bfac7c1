"""
Repositories Package

One repository per owner-scoped table, all sharing the scoping and
failure rules of `FamilyScopedRepository`.
"""

from family_finance.repositories.assets import AssetRepository
from family_finance.repositories.base import FamilyScopedRepository
from family_finance.repositories.categories import CategoryRepository
from family_finance.repositories.families import FamilyRepository
from family_finance.repositories.family_members import FamilyMemberRepository
from family_finance.repositories.liabilities import LiabilityRepository
from family_finance.repositories.transactions import TransactionRepository, type_label

__all__ = [
    "FamilyScopedRepository",
    "AssetRepository",
    "CategoryRepository",
    "FamilyRepository",
    "FamilyMemberRepository",
    "LiabilityRepository",
    "TransactionRepository",
    "type_label",
]
