"""
Recipe synthesis: recipe generation and price lookup joined into one step.

Both calls are issued concurrently and the step succeeds only when both do. The
dish image is not part of the join; callers start it separately once the pair is in.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from chefgenius.models.profile import UserProfile
from chefgenius.models.recipe import Recipe
from chefgenius.models.shopping import PriceSearchResult
from chefgenius.services.gemini_service import GeminiService
from chefgenius.utils.exceptions import ChefGeniusException, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SynthesisResult:
    recipe: Recipe
    prices: PriceSearchResult


def merge_ingredients(*sources: Iterable[str]) -> List[str]:
    """Concatenate ingredient lists, trimming and dropping blanks and case-insensitive repeats."""
    merged: List[str] = []
    seen = set()
    for source in sources:
        for name in source:
            name = (name or "").strip()
            if name and name.lower() not in seen:
                seen.add(name.lower())
                merged.append(name)
    return merged


class SynthesisOrchestrator:
    def __init__(self, gemini: GeminiService) -> None:
        self._gemini = gemini

    async def synthesize(self, ingredients: List[str], profile: UserProfile) -> SynthesisResult:
        """
        Produce a recipe and its price summary for ``ingredients`` plus the profile's
        custom ingredients.

        Raises:
            ValidationError: the merged ingredient list is empty (no call is made)
            ChefGeniusException: either call failed; when both fail, the recipe
                failure is the one raised
        """
        merged = merge_ingredients(ingredients, profile.customIngredients)
        if not merged:
            raise ValidationError("Add at least one ingredient before generating a recipe")

        logger.info("Synthesizing recipe", extra={"ingredients": merged})
        recipe_result, price_result = await asyncio.gather(
            self._gemini.generate_recipe(merged, profile),
            self._gemini.fetch_prices(merged),
            return_exceptions=True,
        )

        if isinstance(recipe_result, BaseException):
            if isinstance(price_result, BaseException):
                logger.warning("Price lookup also failed: %s", price_result)
            logger.error("Recipe generation failed", exc_info=recipe_result)
            raise recipe_result
        if isinstance(price_result, BaseException):
            logger.error("Price lookup failed", exc_info=price_result)
            raise price_result

        return SynthesisResult(recipe=recipe_result, prices=price_result)

    async def render_image(self, recipe: Recipe) -> Optional[str]:
        """Best-effort dish image. Failures are logged and yield None."""
        try:
            return await self._gemini.generate_dish_image(recipe.title, recipe.description)
        except ChefGeniusException as e:
            logger.warning("Dish image generation failed for %s: %s", recipe.title, e)
            return None
