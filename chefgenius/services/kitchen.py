"""
The single-user kitchen session: everything between a fridge photo and a cooked meal.

Holds the non-persisted interactive state (stage, working ingredient list, the
active recipe and its prices/image, substitutions, shopping list, cooking mode) and
delegates durable state to ``PersistenceStore``.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

from chefgenius.config import settings
from chefgenius.core.handles import AsyncioTickScheduler, TickScheduler, spawn
from chefgenius.models.cooking import CookingSnapshot
from chefgenius.models.recipe import Recipe, SavedRecipe
from chefgenius.models.shopping import PriceSearchResult, ShoppingCategory
from chefgenius.services import library
from chefgenius.services.audio import SpeechPlayer
from chefgenius.services.cooking import CookingSession, VoiceCommand
from chefgenius.services.gemini_service import GeminiService
from chefgenius.services.persistence import PersistenceStore
from chefgenius.services.shopping import ShoppingListGenerator
from chefgenius.services.substitutions import SubstitutionResolver
from chefgenius.services.synthesis import SynthesisOrchestrator
from chefgenius.services.voice import (
    AvailableRecognition,
    SpeechRecognition,
    UnavailableRecognition,
    UtteranceFeed,
    VoiceController,
)
from chefgenius.utils.exceptions import ChefGeniusException, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    IDLE = "IDLE"
    ANALYZING_FRIDGE = "ANALYZING_FRIDGE"
    INGREDIENT_CONFIRMATION = "INGREDIENT_CONFIRMATION"
    GENERATING_RECIPE = "GENERATING_RECIPE"
    VIEWING_RECIPE = "VIEWING_RECIPE"
    COOKING_MODE = "COOKING_MODE"
    SHOPPING_LIST = "SHOPPING_LIST"


def default_recognition(feed: UtteranceFeed) -> SpeechRecognition:
    if settings.voice_recognition_enabled:
        return AvailableRecognition(feed.stream)
    return UnavailableRecognition()


class KitchenSession:
    def __init__(
        self,
        gemini: GeminiService,
        store: PersistenceStore,
        *,
        scheduler: Optional[TickScheduler] = None,
        recognition: Optional[SpeechRecognition] = None,
        utterances: Optional[UtteranceFeed] = None,
        speech_player: Optional[SpeechPlayer] = None,
    ) -> None:
        self._gemini = gemini
        self.store = store
        self._scheduler = scheduler or AsyncioTickScheduler()

        self.stage = Stage.IDLE
        self.error: Optional[str] = None
        self.ingredients: List[str] = []

        self.recipe: Optional[Recipe] = None
        self.prices: Optional[PriceSearchResult] = None
        self.image_url: Optional[str] = None
        self._view_token = 0

        self.synthesis = SynthesisOrchestrator(gemini)
        self.substitutions = SubstitutionResolver(gemini)
        self.shopping = ShoppingListGenerator(gemini)
        self.shopping_list: List[ShoppingCategory] = []

        self.checklist: Dict[str, bool] = {}
        self.cooking: Optional[CookingSession] = None
        self.utterances = utterances or UtteranceFeed()
        self.voice = VoiceController(
            recognition if recognition is not None else default_recognition(self.utterances),
            self._on_voice_command,
        )
        self.speech = speech_player or SpeechPlayer()

    # =========================================================
    # Ingredient detection and confirmation
    # =========================================================
    async def detect_ingredients(self, image_data: bytes, mime_type: str) -> List[str]:
        self.stage = Stage.ANALYZING_FRIDGE
        self.error = None
        try:
            detected = await self._gemini.detect_ingredients(image_data, mime_type)
        except ChefGeniusException as e:
            logger.error("Ingredient detection failed: %s", e, exc_info=True)
            self.stage = Stage.IDLE
            self.error = "Failed to analyze image. Please try again."
            raise
        self.ingredients = detected
        self.stage = Stage.INGREDIENT_CONFIRMATION
        return self.ingredients

    def add_ingredient(self, name: str) -> List[str]:
        name = (name or "").strip()
        if name:
            self.ingredients = [*self.ingredients, name]
        if self.stage == Stage.IDLE:
            self.stage = Stage.INGREDIENT_CONFIRMATION
        return self.ingredients

    def remove_ingredient(self, index: int) -> List[str]:
        self.ingredients = library.remove_at(self.ingredients, index)
        return self.ingredients

    def move_ingredient(self, source: int, target: int) -> List[str]:
        if not 0 <= source < len(self.ingredients) or not 0 <= target < len(self.ingredients):
            raise ValidationError(f"Cannot move ingredient {source} to {target}")
        items = list(self.ingredients)
        items.insert(target, items.pop(source))
        self.ingredients = items
        return self.ingredients

    # =========================================================
    # Recipe synthesis and viewing
    # =========================================================
    async def synthesize(self, ingredients: Optional[List[str]] = None) -> Recipe:
        """
        Generate a recipe plus prices for the working ingredients (or ``ingredients``).

        On failure nothing of the attempt is kept: the stage returns to ingredient
        confirmation with a user-visible error and the exception propagates.
        """
        if ingredients is not None:
            self.ingredients = list(ingredients)
        previous_stage = self.stage
        self.error = None
        self.stage = Stage.GENERATING_RECIPE
        try:
            result = await self.synthesis.synthesize(self.ingredients, self.store.profile)
        except ValidationError:
            self.stage = previous_stage
            raise
        except ChefGeniusException:
            self.stage = Stage.INGREDIENT_CONFIRMATION
            self.error = "Failed to generate recipe. Please try again."
            raise

        token = self._show_recipe(result.recipe, prices=result.prices, image_url=None)
        spawn(self._render_image(result.recipe, token), name="dish-image")
        return result.recipe

    async def _render_image(self, recipe: Recipe, token: int) -> None:
        image_url = await self.synthesis.render_image(recipe)
        if image_url is None:
            return
        if token != self._view_token:
            logger.info("Discarding dish image for %s; another recipe is active", recipe.title)
            return
        self.image_url = image_url
        logger.info("Dish image ready for %s", recipe.title)

    def _show_recipe(
        self, recipe: Recipe, *, prices: Optional[PriceSearchResult], image_url: Optional[str]
    ) -> int:
        self.exit_cooking()
        self._view_token += 1
        self.recipe = recipe
        self.prices = prices
        self.image_url = image_url
        self.substitutions.clear()
        self.checklist.clear()
        self.shopping_list = []
        self.stage = Stage.VIEWING_RECIPE
        return self._view_token

    def load_saved_recipe(self, recipe_id: str) -> SavedRecipe:
        saved = self.store.get_saved_recipe(recipe_id)
        self._show_recipe(saved, prices=None, image_url=saved.imageUrl)
        self.store.record_view(saved)
        return saved

    def require_recipe(self) -> Recipe:
        if self.recipe is None:
            raise NotFoundError("No active recipe")
        return self.recipe

    def save_current(
        self,
        *,
        category: str,
        custom_category: Optional[str] = None,
        source_url: Optional[str] = None,
    ) -> SavedRecipe:
        return self.store.save_recipe(
            self.require_recipe(),
            category=category,
            custom_category=custom_category,
            source_url=source_url,
            image_url=self.image_url,
        )

    def share_text(self) -> str:
        return library.format_recipe_share_text(self.require_recipe())

    # =========================================================
    # Substitutions and shopping
    # =========================================================
    async def get_substitution(self, ingredient: str) -> str:
        recipe = self.require_recipe()
        return await self.substitutions.resolve(ingredient, recipe.title)

    async def generate_shopping_list(self) -> List[ShoppingCategory]:
        recipe = self.require_recipe()
        self.shopping_list = await self.shopping.generate(recipe.ingredient_names(), self.store.profile.pantryStaples)
        self.stage = Stage.SHOPPING_LIST
        return self.shopping_list

    # =========================================================
    # Read aloud
    # =========================================================
    async def read_aloud(self, text: str) -> int:
        """Speak ``text``. Calling again while audio is playing stops it instead."""
        if self.speech.is_playing:
            self.speech.stop()
            return 0
        audio = await self._gemini.synthesize_speech(text)
        if not audio:
            return 0
        return self.speech.play_pcm(audio)

    # =========================================================
    # Cooking mode
    # =========================================================
    def start_cooking(self) -> CookingSnapshot:
        recipe = self.require_recipe()
        self.exit_cooking()
        self.cooking = CookingSession(recipe.instructions, self._scheduler, checklist=self.checklist)
        self.stage = Stage.COOKING_MODE
        return self.cooking_snapshot()

    def require_cooking(self) -> CookingSession:
        if self.cooking is None:
            raise ValidationError("Cooking mode is not active")
        return self.cooking

    def cooking_snapshot(self) -> CookingSnapshot:
        return self.require_cooking().snapshot(
            voice_enabled=self.voice.enabled,
            voice_available=self.voice.available,
        )

    def toggle_voice(self) -> bool:
        self.require_cooking()
        return self.voice.toggle()

    def _on_voice_command(self, command: VoiceCommand) -> None:
        if self.cooking is not None:
            self.cooking.apply_command(command)

    def exit_cooking(self) -> None:
        self.voice.disable()
        cooking, self.cooking = self.cooking, None
        if cooking is not None:
            cooking.close()
            if self.stage == Stage.COOKING_MODE:
                self.stage = Stage.VIEWING_RECIPE

    def close(self) -> None:
        self.exit_cooking()
        self.speech.stop()
