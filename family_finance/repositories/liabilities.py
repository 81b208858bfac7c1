"""
Liabilities (debts, loans, financing).

Ordered by due date, soonest first, with undated liabilities at the
end. The UI keeps this list live through `watch()`.
"""

from family_finance.backend import OrderBy
from family_finance.models.finance import CreateLiabilityData, Liability
from family_finance.repositories.base import FamilyScopedRepository


class LiabilityRepository(FamilyScopedRepository[Liability]):
    table = "liabilities"
    model = Liability
    create_model = CreateLiabilityData
    order = (OrderBy(column="due_date", ascending=True, nulls_first=False),)
    label = "liability"
    label_plural = "liabilities"
