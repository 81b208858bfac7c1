"""
Net worth.

The aggregation runs in the backend (`calculate_net_worth`); this
service only calls it for the signed-in user and normalizes the answer.
An empty answer means zero on every line.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import structlog

from family_finance.audit import AuditLogger
from family_finance.auth import Session
from family_finance.backend import BackendClient, BackendError
from family_finance.models.finance import NetWorth
from family_finance.notifications import Notifier

logger = structlog.get_logger(__name__)

NET_WORTH_PROCEDURE = "calculate_net_worth"


def _decimal_or_zero(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return result if result.is_finite() else Decimal("0")


def net_worth_from_rows(rows: list[dict[str, Any]]) -> NetWorth:
    """First row of the procedure result, zeros when there is none."""
    if not rows:
        return NetWorth()
    row = rows[0]
    return NetWorth(
        total_assets=_decimal_or_zero(row.get("total_assets")),
        total_liabilities=_decimal_or_zero(row.get("total_liabilities")),
        net_worth=_decimal_or_zero(row.get("net_worth")),
    )


class NetWorthService:
    """Fetches the caller's net worth."""

    def __init__(
        self,
        backend: BackendClient,
        notifier: Notifier,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._backend = backend
        self._notifier = notifier
        self._audit_logger = audit_logger
        self.loading = False

    async def fetch(self, session: Session) -> Optional[NetWorth]:
        """
        Returns:
            The net worth, or None when nobody is signed in or the
            backend call failed
        """
        if session.user is None:
            return None

        self.loading = True
        try:
            rows = await self._backend.rpc(NET_WORTH_PROCEDURE, {"target_user_id": session.user.id})
        except BackendError as e:
            logger.error("net_worth_fetch_failed", user_id=session.user.id, error=str(e))
            self._notifier.error(
                "Error calculating net worth",
                "We could not calculate your net worth.",
            )
            if self._audit_logger:
                await self._audit_logger.log_backend_error(
                    user_id=session.user.id,
                    operation="rpc",
                    table=NET_WORTH_PROCEDURE,
                    error_message=str(e),
                )
            return None
        finally:
            self.loading = False

        return net_worth_from_rows(rows)
