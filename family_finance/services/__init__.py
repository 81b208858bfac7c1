"""Services Package"""

from family_finance.services.net_worth import NetWorthService, net_worth_from_rows

__all__ = ["NetWorthService", "net_worth_from_rows"]
