"""
Transaction categories.

Favorites sort first, then alphabetically. A category of type "both"
is offered for income and expense alike.
"""

from typing import Any, Union

from family_finance.backend import OrderBy
from family_finance.config import get_settings
from family_finance.models.finance import Category, CategoryType, CreateCategoryData
from family_finance.repositories.base import FamilyScopedRepository


class CategoryRepository(FamilyScopedRepository[Category]):
    table = "categories"
    model = Category
    create_model = CreateCategoryData
    order = (
        OrderBy(column="is_favorite", ascending=False),
        OrderBy(column="name", ascending=True),
    )
    label = "category"
    label_plural = "categories"

    def apply_defaults(self, row: dict[str, Any]) -> dict[str, Any]:
        settings = get_settings().app
        if not row.get("color"):
            row["color"] = settings.default_category_color
        if not row.get("emoji"):
            row["emoji"] = settings.default_category_emoji
        row.setdefault("is_favorite", False)
        return row

    async def toggle_favorite(self, category_id: str, is_favorite: bool) -> bool:
        """Flip the favorite flag; `is_favorite` is the current value."""
        return await self.update(category_id, {"is_favorite": not is_favorite})

    def by_type(self, category_type: Union[CategoryType, str]) -> list[Category]:
        wanted = CategoryType(category_type)
        return [
            c for c in self._items
            if c.type == wanted or c.type == CategoryType.BOTH
        ]

    def favorites(self) -> list[Category]:
        return [c for c in self._items if c.is_favorite]
