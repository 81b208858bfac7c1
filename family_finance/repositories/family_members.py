"""Family members of the signed-in user."""

from typing import Any

from family_finance.backend import OrderBy
from family_finance.models.finance import CreateFamilyMemberData, FamilyMember
from family_finance.repositories.base import FamilyScopedRepository


class FamilyMemberRepository(FamilyScopedRepository[FamilyMember]):
    table = "family_members"
    model = FamilyMember
    create_model = CreateFamilyMemberData
    order = (OrderBy(column="created_at", ascending=False),)
    label = "family member"
    label_plural = "family members"

    def apply_defaults(self, row: dict[str, Any]) -> dict[str, Any]:
        row.setdefault("avatar_url", None)
        row.setdefault("permissions", [])
        return row
