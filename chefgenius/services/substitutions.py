"""Missing-ingredient substitutions, one lookup at a time."""

import logging
from typing import Dict, Optional

from chefgenius.services.gemini_service import GeminiService
from chefgenius.utils.exceptions import ConflictError

logger = logging.getLogger(__name__)


class SubstitutionResolver:
    """
    Answers "what can I use instead of X?" for the active recipe.

    Only one lookup may be pending for the whole session; a second request while one
    is in flight raises ``ConflictError``. Answers are cached per ingredient name until
    ``clear`` is called for a new recipe.
    """

    def __init__(self, gemini: GeminiService) -> None:
        self._gemini = gemini
        self._cache: Dict[str, str] = {}
        self._pending: Optional[str] = None
        self._generation = 0

    @property
    def pending(self) -> Optional[str]:
        return self._pending

    @property
    def answers(self) -> Dict[str, str]:
        return dict(self._cache)

    async def resolve(self, ingredient: str, recipe_title: str) -> str:
        if ingredient in self._cache:
            return self._cache[ingredient]
        if self._pending is not None:
            raise ConflictError(f"Already looking up a substitute for '{self._pending}'")

        generation = self._generation
        self._pending = ingredient
        try:
            answer = await self._gemini.get_substitution(ingredient, recipe_title)
        finally:
            self._pending = None

        if generation == self._generation:
            self._cache[ingredient] = answer
        else:
            logger.info("Recipe changed during substitution lookup for %s; not caching", ingredient)
        return answer

    def clear(self) -> None:
        self._cache.clear()
        self._generation += 1
