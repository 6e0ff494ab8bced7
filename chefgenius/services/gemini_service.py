"""
Gemini service: the external generation capabilities used by ChefGenius.

Key design:
- Every public call goes through ``with_retry``; callers never retry themselves.
- List-shaped answers (detected ingredients) fall back to a naive comma split.
- Schema-shaped answers (recipe, shopping list) that fail to parse or validate raise
  ``MalformedResponseError``; they are never patched into a best guess.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from google import genai
from google.genai import types
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from chefgenius.config import settings
from chefgenius.core.resilience import with_retry
from chefgenius.models.profile import UserProfile
from chefgenius.models.recipe import Recipe
from chefgenius.models.shopping import PriceSearchResult, ShoppingCategory
from chefgenius.services.gemini_utils import (
    clean_schema_for_gemini,
    get_grounding_citations,
    get_inline_data,
    get_response_text,
    log_empty_response,
    strip_code_fences,
)
from chefgenius.utils.exceptions import GeminiError, MalformedResponseError

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_PRICES_TEXT = "Could not fetch pricing information."
NO_SUBSTITUTION_TEXT = "No substitution found."

_shopping_list_adapter = TypeAdapter(List[ShoppingCategory])


@lru_cache(maxsize=1)
def get_recipe_schema() -> Dict[str, Any]:
    """Recipe JSON schema cleaned for Gemini, cached."""
    return clean_schema_for_gemini(Recipe.model_json_schema())


@lru_cache(maxsize=1)
def get_shopping_list_schema() -> Dict[str, Any]:
    """Shopping list JSON schema cleaned for Gemini, cached."""
    return clean_schema_for_gemini(_shopping_list_adapter.json_schema())


class GeminiService:
    """Service for interacting with Gemini API."""

    def __init__(
        self,
        client: Optional[Any] = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._sleep = sleep

    @property
    def client(self) -> genai.Client:
        """Get or create Gemini client (lazy initialization)."""
        if self._client is None:
            if not settings.gemini_api_key:
                raise GeminiError("GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=settings.gemini_api_key)
        return self._client

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------

    async def detect_ingredients(self, image_data: bytes, mime_type: str) -> List[str]:
        """Identify the food ingredients visible in a fridge or pantry photo."""
        contents = [
            types.Part.from_bytes(data=image_data, mime_type=mime_type),
            "Identify the food ingredients visible in this fridge/pantry photo. "
            "Return ONLY a JSON array of strings, e.g. [\"eggs\", \"milk\", \"carrots\"]. "
            "Do not include markdown formatting.",
        ]

        async def _once() -> List[str]:
            logger.info("Detecting ingredients in photo (mime_type=%s, bytes=%d)", mime_type, len(image_data))
            response = await self._call_gemini(model=settings.gemini_image_model, contents=contents)
            return self._parse_ingredient_list(get_response_text(response) or "[]")

        return await self._guarded("detect ingredients", _once)

    async def generate_recipe(self, ingredients: List[str], profile: UserProfile) -> Recipe:
        """
        Generate a structured recipe from ingredients and profile constraints.

        Allergens are sent as hard exclusions; dietary restrictions and cuisine
        preferences as soft guidance.
        """
        prompt = self._build_recipe_prompt(ingredients, profile)
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=get_recipe_schema(),
            temperature=settings.gemini_temperature,
        )

        async def _once() -> Recipe:
            logger.info("Generating recipe from %d ingredients", len(ingredients))
            response = await self._call_gemini(model=settings.gemini_text_model, contents=prompt, config=config)
            text = get_response_text(response)
            if not text:
                log_empty_response("generate_recipe", response)
                raise MalformedResponseError("Gemini returned an empty recipe")
            try:
                return Recipe.model_validate(json.loads(strip_code_fences(text)))
            except (json.JSONDecodeError, PydanticValidationError) as e:
                logger.error("Recipe parse/validation failed: %s", str(e))
                raise MalformedResponseError(f"Failed to parse/validate recipe JSON: {str(e)}") from e

        return await self._guarded("generate recipe", _once)

    async def fetch_prices(self, ingredients: List[str]) -> PriceSearchResult:
        """Look up current grocery prices through Google Search grounding."""
        prompt = (
            "Find current average prices for the following ingredients at major US grocery "
            "stores (like Walmart, Kroger, Whole Foods): "
            f"{', '.join(ingredients)}. Summarize the price ranges concisely."
        )
        config = types.GenerateContentConfig(tools=[types.Tool(google_search=types.GoogleSearch())])

        async def _once() -> PriceSearchResult:
            logger.info("Fetching prices for %d ingredients", len(ingredients))
            response = await self._call_gemini(model=settings.gemini_text_model, contents=prompt, config=config)
            return PriceSearchResult(
                text=get_response_text(response).strip() or NO_PRICES_TEXT,
                citations=get_grounding_citations(response),
            )

        return await self._guarded("fetch prices", _once)

    async def generate_dish_image(self, title: str, description: str) -> Optional[str]:
        """Render the finished dish. Returns a data URI, or None when no image came back."""
        prompt = (
            f"Professional food photography of {title}. {description}. "
            "High resolution, appetizing, restaurant quality, 4k lighting."
        )
        config = types.GenerateContentConfig(image_config=types.ImageConfig(aspect_ratio="16:9"))

        async def _once() -> Optional[str]:
            logger.info("Generating dish image for %s", title)
            response = await self._call_gemini(model=settings.gemini_image_model, contents=prompt, config=config)
            inline = get_inline_data(response)
            if inline is None:
                return None
            data, mime_type = inline
            return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"

        return await self._guarded("generate dish image", _once)

    async def synthesize_speech(self, text: str) -> Optional[bytes]:
        """Read text aloud. Returns raw 16-bit mono 24 kHz PCM, or None."""
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=settings.gemini_tts_voice),
                ),
            ),
        )

        async def _once() -> Optional[bytes]:
            response = await self._call_gemini(model=settings.gemini_tts_model, contents=text, config=config)
            inline = get_inline_data(response)
            return inline[0] if inline else None

        return await self._guarded("synthesize speech", _once)

    async def generate_shopping_list(
        self, ingredients: List[str], pantry_staples: List[str]
    ) -> List[ShoppingCategory]:
        """Group ingredients into shopping categories, leaving out staples."""
        prompt = (
            f"Take this list of ingredients: {', '.join(ingredients)}.\n"
            f"1. Remove common pantry staples AND explicitly these items: {', '.join(pantry_staples)}.\n"
            "2. Group the remaining items into logical shopping categories "
            "(e.g., Produce, Dairy, Meat, Dry Goods).\n"
            '3. Return a JSON structure: [{ "category": "Produce", "items": [{"name": "Carrots", "checked": false}] }].'
        )
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=get_shopping_list_schema(),
        )

        async def _once() -> List[ShoppingCategory]:
            logger.info("Generating shopping list for %d ingredients", len(ingredients))
            response = await self._call_gemini(model=settings.gemini_text_model, contents=prompt, config=config)
            text = get_response_text(response)
            if not text:
                log_empty_response("generate_shopping_list", response)
                raise MalformedResponseError("Gemini returned an empty shopping list")
            try:
                return _shopping_list_adapter.validate_python(json.loads(strip_code_fences(text)))
            except (json.JSONDecodeError, PydanticValidationError) as e:
                logger.error("Shopping list parse/validation failed: %s", str(e))
                raise MalformedResponseError(f"Failed to parse/validate shopping list JSON: {str(e)}") from e

        return await self._guarded("generate shopping list", _once)

    async def get_substitution(self, ingredient: str, recipe_title: str) -> str:
        """Suggest a short substitute for a missing ingredient."""
        prompt = (
            f'I am making "{recipe_title}" but I am missing "{ingredient}". '
            "Suggest 1-2 viable substitutes I might have, or tell me if I can omit it. "
            "Keep it very brief (max 1 sentence)."
        )

        async def _once() -> str:
            response = await self._call_gemini(model=settings.gemini_text_model, contents=prompt)
            return get_response_text(response).strip() or NO_SUBSTITUTION_TEXT

        return await self._guarded("get substitution", _once)

    # ---------------------------------------------------------------------
    # Prompts / parsing
    # ---------------------------------------------------------------------

    def _build_recipe_prompt(self, ingredients: List[str], profile: UserProfile) -> str:
        profile_context = ""
        if profile.dietaryRestrictions:
            profile_context += f"Dietary Restrictions: {', '.join(profile.dietaryRestrictions)}. "
        if profile.allergies:
            profile_context += f"AVOID these Allergens: {', '.join(profile.allergies)}. "
        if profile.cuisinePreferences:
            profile_context += f"Preferred Cuisines: {', '.join(profile.cuisinePreferences)}. "

        return (
            f"Create a delicious recipe using some or all of these ingredients: {', '.join(ingredients)}.\n"
            "You may assume common pantry staples (oil, salt, pepper).\n"
            f"{profile_context}\n"
            "Also calculate estimated nutritional values per serving."
        ).strip()

    @staticmethod
    def _parse_ingredient_list(text: str) -> List[str]:
        """Parse a JSON array of names, falling back to splitting the raw text on commas."""
        clean_text = strip_code_fences(text)
        try:
            data = json.loads(clean_text)
            if not isinstance(data, list):
                raise ValueError("expected a JSON array")
            names = [str(item).strip() for item in data]
        except ValueError:
            # json.JSONDecodeError is a ValueError too
            logger.warning("Failed to parse ingredients JSON, splitting raw text: %s", text[:200])
            names = [part.strip().strip("\"'[]") for part in clean_text.split(",")]
        return [name for name in names if name]

    # ---------------------------------------------------------------------
    # Core Gemini call
    # ---------------------------------------------------------------------

    async def _guarded(self, action: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run one capability through the retry envelope and map failures to GeminiError."""
        try:
            return await with_retry(
                operation,
                retries=settings.retry_attempts,
                delay=settings.retry_initial_delay,
                timeout=settings.request_timeout,
                sleep=self._sleep,
            )
        except GeminiError:
            raise
        except Exception as e:
            logger.error("Failed to %s: %s", action, str(e), exc_info=True)
            raise GeminiError(f"Failed to {action}: {str(e)}") from e

    async def _call_gemini(
        self,
        *,
        model: str,
        contents: Any,
        config: Optional[types.GenerateContentConfig] = None,
    ) -> Any:
        """Single blocking SDK call, moved off the event loop."""

        def _sync_call() -> Any:
            return self.client.models.generate_content(model=model, contents=contents, config=config)

        return await asyncio.to_thread(_sync_call)
