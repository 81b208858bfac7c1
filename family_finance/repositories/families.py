"""
Families.

A family is administered by the user who created it (`admin_user_id`).
The session's `family_id` names the family the user currently belongs
to, which may be one they do not administer.
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from family_finance.backend import BackendError, OrderBy
from family_finance.models.finance import CreateFamilyData, Family
from family_finance.repositories.base import FamilyScopedRepository

logger = structlog.get_logger(__name__)


class FamilyRepository(FamilyScopedRepository[Family]):
    table = "families"
    owner_key = "admin_user_id"
    model = Family
    create_model = CreateFamilyData
    order = (OrderBy(column="created_at", ascending=False),)
    label = "family"
    label_plural = "families"

    async def current(self) -> Optional[Family]:
        """The family named by the session, or None."""
        family_id = self._session.family_id
        if self._session.user_id is None or family_id is None:
            return None
        try:
            row = await self._backend.select_one(self.table, {"id": family_id})
            return Family.model_validate(row) if row is not None else None
        except (BackendError, ValidationError) as e:
            logger.error("family_fetch_failed", family_id=family_id, error=str(e))
            self._notifier.error(
                "Error loading family",
                "We could not load your family.",
            )
            return None

    async def rename(self, family_id: str, name: str) -> bool:
        """Only the family's administrator can rename it."""
        try:
            data = CreateFamilyData(name=name)
        except ValidationError as e:
            logger.warning("family_rename_rejected", family_id=family_id, error=str(e))
            self._notifier.error(
                "Error updating family",
                "The family name is not valid.",
            )
            return False
        return await self.update(family_id, {"name": data.name})
