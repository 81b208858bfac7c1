"""
Income and expense transactions.

Only the most recent transactions are kept in the snapshot (newest date
first, then newest entry). Monthly figures are computed from that
snapshot, so a very busy month can be undercounted.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from family_finance.backend import OrderBy
from family_finance.config import get_settings
from family_finance.models.finance import (
    CreateTransactionData,
    MonthlyStats,
    Transaction,
    TransactionType,
)
from family_finance.repositories.base import FamilyScopedRepository

TYPE_LABELS = {
    TransactionType.INCOME: "Income",
    TransactionType.EXPENSE: "Expense",
}


def type_label(transaction_type: Union[TransactionType, str]) -> str:
    """Display label for a transaction type; unknown types echo back."""
    try:
        return TYPE_LABELS[TransactionType(transaction_type)]
    except ValueError:
        return str(transaction_type)


class TransactionRepository(FamilyScopedRepository[Transaction]):
    table = "transactions"
    model = Transaction
    create_model = CreateTransactionData
    order = (
        OrderBy(column="date", ascending=False),
        OrderBy(column="created_at", ascending=False),
    )
    label = "transaction"
    label_plural = "transactions"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.limit = get_settings().app.transaction_list_limit

    def apply_defaults(self, row: dict[str, Any]) -> dict[str, Any]:
        if not row.get("date"):
            row["date"] = date.today().isoformat()
        return row

    def monthly_stats(self, today: Optional[date] = None) -> MonthlyStats:
        """Income, expenses and balance for the month containing `today`."""
        today = today or date.today()
        income = Decimal("0")
        expenses = Decimal("0")
        for t in self._items:
            if t.date.year != today.year or t.date.month != today.month:
                continue
            if t.type == TransactionType.INCOME:
                income += t.amount
            else:
                expenses += t.amount
        return MonthlyStats(income=income, expenses=expenses, balance=income - expenses)

    @staticmethod
    def type_label(transaction_type: Union[TransactionType, str]) -> str:
        return type_label(transaction_type)
