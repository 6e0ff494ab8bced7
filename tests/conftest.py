"""Pytest configuration and fixtures."""

import os

# Settings are read at import time
os.environ.setdefault("RATE_LIMIT_PER_HOUR", "100000")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from chefgenius.core.handles import ResourceHandle
from chefgenius.main import app
from chefgenius.middleware.rate_limit import limiter
from chefgenius.models.profile import UserProfile
from chefgenius.models.recipe import Recipe
from chefgenius.models.shopping import (
    GroundingCitation,
    PriceSearchResult,
    ShoppingCategory,
    ShoppingItem,
)
from chefgenius.services.audio import SpeechPlayer
from chefgenius.services.kitchen import KitchenSession
from chefgenius.services.persistence import PersistenceStore
from chefgenius.services.voice import AvailableRecognition, UtteranceFeed


def make_recipe(title: str = "Spinach Frittata", **overrides: Any) -> Recipe:
    data: Dict[str, Any] = {
        "title": title,
        "description": "Fluffy eggs baked with wilted spinach.",
        "ingredients": [
            {"name": "eggs", "quantity": "6"},
            {"name": "spinach", "quantity": "2 cups", "details": "washed"},
            {"name": "salt", "quantity": "1 tsp"},
        ],
        "instructions": [
            "Whisk the eggs with salt.",
            "Wilt the spinach in a hot pan.",
            "Bake for 10 minutes until set.",
        ],
        "prepTime": "10 minutes",
        "cookTime": "15 minutes",
        "servings": 2,
        "cuisine": "Italian",
        "nutrition": {"calories": 320, "protein": "22g", "carbs": "4g", "fat": "24g"},
    }
    data.update(overrides)
    return Recipe.model_validate(data)


class FakeGeminiService:
    """Stands in for GeminiService. Set an attribute to an exception instance to make that call fail."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.detected: Any = ["eggs", "spinach"]
        self.recipe: Any = make_recipe()
        self.prices: Any = PriceSearchResult(
            text="Eggs $3-5 a dozen, spinach $2-4 a bag.",
            citations=[GroundingCitation(uri="https://example.com/prices", title="Prices")],
        )
        self.image: Any = "data:image/png;base64,aW1hZ2U="
        self.speech: Any = b"\x00\x00\xff\x7f" * 12000
        self.shopping: Any = [
            ShoppingCategory(category="Dairy", items=[ShoppingItem(name="eggs"), ShoppingItem(name="milk")]),
            ShoppingCategory(category="Pantry", items=[ShoppingItem(name="Salt")]),
        ]
        self.substitution: Any = "Use kale instead."
        # Awaited before answering when set; lets tests hold a call open
        self.gates: Dict[str, Any] = {}

    async def _answer(self, name: str, value: Any, *args: Any) -> Any:
        self.calls.append((name, *args))
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        if isinstance(value, BaseException):
            raise value
        return value

    async def detect_ingredients(self, image_data: bytes, mime_type: str) -> List[str]:
        return await self._answer("detect_ingredients", self.detected, mime_type)

    async def generate_recipe(self, ingredients: List[str], profile: UserProfile) -> Recipe:
        return await self._answer("generate_recipe", self.recipe, list(ingredients))

    async def fetch_prices(self, ingredients: List[str]) -> PriceSearchResult:
        return await self._answer("fetch_prices", self.prices, list(ingredients))

    async def generate_dish_image(self, title: str, description: str) -> Optional[str]:
        return await self._answer("generate_dish_image", self.image, title)

    async def synthesize_speech(self, text: str) -> Optional[bytes]:
        return await self._answer("synthesize_speech", self.speech, text)

    async def generate_shopping_list(self, ingredients: List[str], pantry_staples: List[str]) -> List[ShoppingCategory]:
        return await self._answer("generate_shopping_list", self.shopping, list(ingredients), list(pantry_staples))

    async def get_substitution(self, ingredient: str, recipe_title: str) -> str:
        return await self._answer("get_substitution", self.substitution, ingredient, recipe_title)

    def called(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]


class ManualTickScheduler:
    """Records scheduled callbacks; tests drive them with ``fire``."""

    def __init__(self) -> None:
        self.callbacks: List[Callable[[], bool]] = []
        self.handles: List[ResourceHandle] = []
        self.release_count = 0

    def schedule(self, callback: Callable[[], bool], interval: float) -> ResourceHandle:
        self.callbacks.append(callback)

        def _release() -> None:
            self.release_count += 1
            if callback in self.callbacks:
                self.callbacks.remove(callback)

        handle = ResourceHandle(_release)
        self.handles.append(handle)
        return handle

    @property
    def active(self) -> int:
        return len(self.callbacks)

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            for callback in list(self.callbacks):
                if not callback():
                    self.callbacks.remove(callback)


class RecordingSink:
    """Audio sink that never ends on its own."""

    def __init__(self) -> None:
        self.played: List[Any] = []
        self.stopped = 0

    def play(self, samples, sample_rate, on_ended):
        sink = self

        class _Playback:
            active = True

            def stop(self) -> None:
                self.active = False
                sink.stopped += 1
                on_ended()

        self.played.append(samples)
        return _Playback()


@pytest.fixture
def fake_gemini() -> FakeGeminiService:
    return FakeGeminiService()


@pytest.fixture
def store(tmp_path) -> PersistenceStore:
    return PersistenceStore.open(tmp_path / "chefgenius.db")


@pytest.fixture
def scheduler() -> ManualTickScheduler:
    return ManualTickScheduler()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def kitchen(fake_gemini, store, scheduler, sink) -> KitchenSession:
    feed = UtteranceFeed()
    session = KitchenSession(
        fake_gemini,
        store,
        scheduler=scheduler,
        recognition=AvailableRecognition(feed.stream),
        utterances=feed,
        speech_player=SpeechPlayer(sink),
    )
    return session


@pytest.fixture
def client(kitchen):
    """Test client bound to a fresh kitchen session backed by a temp database."""
    limiter.reset()
    app.state.kitchen = kitchen
    with TestClient(app) as test_client:
        yield test_client
    app.state.kitchen = None
