"""Assets owned by the signed-in user."""

from typing import Any

from family_finance.backend import OrderBy
from family_finance.models.finance import Asset, CreateAssetData
from family_finance.repositories.base import FamilyScopedRepository


class AssetRepository(FamilyScopedRepository[Asset]):
    table = "assets"
    model = Asset
    create_model = CreateAssetData
    order = (OrderBy(column="created_at", ascending=False),)
    label = "asset"
    label_plural = "assets"

    def apply_defaults(self, row: dict[str, Any]) -> dict[str, Any]:
        # an asset starts out worth what was paid for it
        if row.get("current_value") is None:
            row["current_value"] = row.get("value")
        return row
