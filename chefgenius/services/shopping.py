"""Shopping list generation."""

import logging
from typing import List, Sequence

from chefgenius.models.shopping import ShoppingCategory, ShoppingItem
from chefgenius.services.gemini_service import GeminiService

logger = logging.getLogger(__name__)


def exclude_staples(categories: Sequence[ShoppingCategory], pantry_staples: Sequence[str]) -> List[ShoppingCategory]:
    """Drop staple items (case-insensitive) and empty categories; every item starts unchecked."""
    staples = {s.strip().lower() for s in pantry_staples}
    result: List[ShoppingCategory] = []
    for category in categories:
        items = [
            ShoppingItem(name=item.name.strip(), checked=False)
            for item in category.items
            if item.name.strip() and item.name.strip().lower() not in staples
        ]
        if items:
            result.append(ShoppingCategory(category=category.category, items=items))
    return result


class ShoppingListGenerator:
    """Builds a fresh categorized list for a recipe. Nothing carries over from earlier lists."""

    def __init__(self, gemini: GeminiService) -> None:
        self._gemini = gemini

    async def generate(self, ingredients: List[str], pantry_staples: List[str]) -> List[ShoppingCategory]:
        categories = await self._gemini.generate_shopping_list(ingredients, pantry_staples)
        filtered = exclude_staples(categories, pantry_staples)
        logger.info(
            "Shopping list ready",
            extra={"categories": len(filtered), "items": sum(len(c.items) for c in filtered)},
        )
        return filtered
