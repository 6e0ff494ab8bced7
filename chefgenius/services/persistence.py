"""
Durable user state: profile, saved recipes, meal plan and recently viewed.

Each record lives under its own key in a small SQLite key/value table and is
written in its own transaction, so one failing key never rolls back another.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from chefgenius.models.meal_plan import DayOfWeek, MealPlan
from chefgenius.models.profile import UserProfile
from chefgenius.models.recipe import Recipe, SavedRecipe
from chefgenius.services import library
from chefgenius.utils.exceptions import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROFILE_KEY = "chefGenius_profile"
SAVED_RECIPES_KEY = "chefGenius_savedRecipes"
MEAL_PLAN_KEY = "chefGenius_mealPlan"
RECENTLY_VIEWED_KEY = "chefGenius_recentlyViewed"

_recipes_adapter = TypeAdapter(List[SavedRecipe])


class KeyValueStore:
    """SQLite-backed string records keyed by name."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(self.path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS records (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[str]:
        with sqlite3.connect(self.path) as conn:
            row = conn.execute("SELECT value FROM records WHERE key = ?", (key,)).fetchone()
            return row[0] if row else None

    def put(self, key: str, value: str) -> None:
        try:
            with sqlite3.connect(self.path) as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO records (key, value, updated_at) VALUES (?, ?, ?)",
                    (key, value, datetime.now().isoformat()),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Could not write '{key}': {e}") from e


class PersistenceStore:
    """
    Owns the four durable records. Loaded once at startup, tolerant of missing or
    corrupt data; every mutation replaces the in-memory value and writes its key
    synchronously.
    """

    def __init__(self, backend: KeyValueStore) -> None:
        self._backend = backend
        self.profile = UserProfile()
        self.saved_recipes: List[SavedRecipe] = []
        self.meal_plan = MealPlan()
        self.recently_viewed: List[SavedRecipe] = []

    @classmethod
    def open(cls, path: Union[str, Path]) -> "PersistenceStore":
        store = cls(KeyValueStore(path))
        store.load()
        return store

    # -------------------------
    # Load
    # -------------------------
    def load(self) -> None:
        self.profile = self._read(PROFILE_KEY, UserProfile.model_validate_json, UserProfile)
        self.saved_recipes = self._read(SAVED_RECIPES_KEY, _recipes_adapter.validate_json, list)
        self.meal_plan = self._read(MEAL_PLAN_KEY, MealPlan.model_validate_json, MealPlan)
        self.recently_viewed = self._read(RECENTLY_VIEWED_KEY, _recipes_adapter.validate_json, list)
        logger.info(
            "Loaded user state",
            extra={
                "saved_recipes": len(self.saved_recipes),
                "recently_viewed": len(self.recently_viewed),
            },
        )

    def _read(self, key: str, parse: Callable[[str], T], default: Callable[[], T]) -> T:
        try:
            raw = self._backend.get(key)
        except sqlite3.Error as e:
            logger.warning("Could not read %s, using default: %s", key, e)
            return default()
        if raw is None:
            return default()
        try:
            return parse(raw)
        except (PydanticValidationError, ValueError) as e:
            logger.warning("Discarding corrupt %s record: %s", key, e)
            return default()

    def _write(self, key: str, value: Any) -> None:
        if isinstance(value, list):
            payload = _recipes_adapter.dump_json(value).decode("utf-8")
        else:
            payload = value.model_dump_json()
        try:
            self._backend.put(key, payload)
        except StorageError:
            logger.error("Storage write failed for %s; record left stale", key, exc_info=True)
            raise

    # -------------------------
    # Profile
    # -------------------------
    def update_profile(self, profile: UserProfile) -> UserProfile:
        self.profile = profile
        self._write(PROFILE_KEY, profile)
        return profile

    def add_custom_ingredient(self, value: str) -> UserProfile:
        return self._edit_profile_list("customIngredients", library.add_unique, value)

    def remove_custom_ingredient(self, index: int) -> UserProfile:
        return self._edit_profile_list("customIngredients", library.remove_at, index)

    def add_pantry_staple(self, value: str) -> UserProfile:
        return self._edit_profile_list("pantryStaples", library.add_unique, value)

    def remove_pantry_staple(self, index: int) -> UserProfile:
        return self._edit_profile_list("pantryStaples", library.remove_at, index)

    def _edit_profile_list(self, field: str, edit: Callable[[List[str], Any], List[str]], arg: Any) -> UserProfile:
        current = getattr(self.profile, field)
        updated = edit(current, arg)
        if updated == current:
            return self.profile
        return self.update_profile(self.profile.model_copy(update={field: updated}))

    # -------------------------
    # Saved recipes
    # -------------------------
    def get_saved_recipe(self, recipe_id: str) -> SavedRecipe:
        return library.find_recipe(self.saved_recipes, recipe_id)

    def save_recipe(
        self,
        recipe: Recipe,
        *,
        category: str,
        custom_category: Optional[str] = None,
        source_url: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> SavedRecipe:
        saved = library.make_saved_recipe(
            recipe,
            self.saved_recipes,
            category=category,
            custom_category=custom_category,
            source_url=source_url,
            image_url=image_url,
        )
        self.saved_recipes = library.prepend_recipe(self.saved_recipes, saved)
        self._write(SAVED_RECIPES_KEY, self.saved_recipes)
        logger.info("Saved recipe %s (%s)", saved.id, saved.title)
        return saved

    def rate_recipe(self, recipe_id: str, rating: int) -> SavedRecipe:
        self.saved_recipes = library.rate_recipe(self.saved_recipes, recipe_id, rating)
        self._write(SAVED_RECIPES_KEY, self.saved_recipes)
        return self.get_saved_recipe(recipe_id)

    def delete_recipe(self, recipe_id: str) -> None:
        """Remove from the library, then from every day of the meal plan."""
        self.saved_recipes = library.remove_recipe(self.saved_recipes, recipe_id)
        self._write(SAVED_RECIPES_KEY, self.saved_recipes)

        self.meal_plan = library.remove_from_all_days(self.meal_plan, recipe_id)
        self._write(MEAL_PLAN_KEY, self.meal_plan)
        logger.info("Deleted saved recipe %s", recipe_id)

    # -------------------------
    # Meal plan
    # -------------------------
    def add_to_meal_plan(self, day: DayOfWeek, recipe_id: str) -> MealPlan:
        recipe = self.get_saved_recipe(recipe_id)
        updated = library.add_to_meal_plan(self.meal_plan, day, recipe)
        if updated is not self.meal_plan:
            self.meal_plan = updated
            self._write(MEAL_PLAN_KEY, self.meal_plan)
        return self.meal_plan

    def remove_from_meal_plan(self, day: DayOfWeek, recipe_id: str) -> MealPlan:
        self.meal_plan = library.remove_from_meal_plan(self.meal_plan, day, recipe_id)
        self._write(MEAL_PLAN_KEY, self.meal_plan)
        return self.meal_plan

    # -------------------------
    # Recently viewed
    # -------------------------
    def record_view(self, recipe: SavedRecipe) -> List[SavedRecipe]:
        self.recently_viewed = library.record_view(self.recently_viewed, recipe)
        self._write(RECENTLY_VIEWED_KEY, self.recently_viewed)
        return self.recently_viewed
