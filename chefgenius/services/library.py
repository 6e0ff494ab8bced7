"""
Pure state transitions for the user's library: saved recipes, meal plan,
recently viewed, and profile lists. Each function returns a new value and never
mutates its inputs; persisting the result is the store's job.
"""

import time
from typing import Iterable, List, Optional, Sequence

from chefgenius.models.meal_plan import DayOfWeek, MealPlan
from chefgenius.models.profile import UserProfile
from chefgenius.models.recipe import Recipe, SavedRecipe
from chefgenius.models.shopping import ShoppingCategory
from chefgenius.utils.durations import is_quick
from chefgenius.utils.exceptions import NotFoundError, ValidationError
from chefgenius.utils.validators import validate_rating, validate_source_url

RECIPE_CATEGORIES = ["Favorites", "Weeknight Meals", "Desserts", "Breakfast", "Lunch", "Dinner", "Other"]
RECENTLY_VIEWED_LIMIT = 5
ALL = "All"


# =========================================================
# Saved recipes
# =========================================================
def new_recipe_id(existing: Iterable[SavedRecipe], now_ms: Optional[int] = None) -> str:
    """Millisecond timestamp id, bumped past any existing id so ids sort by creation."""
    candidate = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    numeric = [int(r.id) for r in existing if r.id.isdigit()]
    if numeric and max(numeric) >= candidate:
        candidate = max(numeric) + 1
    return str(candidate)


def resolve_category(category: str, custom_category: Optional[str] = None) -> str:
    if category not in RECIPE_CATEGORIES:
        raise ValidationError(f"Unknown category '{category}'. Choose one of: {', '.join(RECIPE_CATEGORIES)}")
    if category == "Other" and custom_category and custom_category.strip():
        return custom_category.strip()
    return category


def make_saved_recipe(
    recipe: Recipe,
    existing: Sequence[SavedRecipe],
    *,
    category: str,
    custom_category: Optional[str] = None,
    source_url: Optional[str] = None,
    image_url: Optional[str] = None,
    now_ms: Optional[int] = None,
) -> SavedRecipe:
    """Snapshot the active recipe into a library entry with a fresh id and zero rating."""
    saved_at = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    data = recipe.model_dump()
    data.update(
        id=new_recipe_id(existing, saved_at),
        category=resolve_category(category, custom_category),
        savedAt=saved_at,
        imageUrl=image_url,
        rating=0,
        sourceUrl=validate_source_url(source_url) or recipe.sourceUrl,
    )
    return SavedRecipe.model_validate(data)


def find_recipe(recipes: Sequence[SavedRecipe], recipe_id: str) -> SavedRecipe:
    for recipe in recipes:
        if recipe.id == recipe_id:
            return recipe
    raise NotFoundError(f"Saved recipe '{recipe_id}' not found")


def prepend_recipe(recipes: Sequence[SavedRecipe], recipe: SavedRecipe) -> List[SavedRecipe]:
    return [recipe, *recipes]


def remove_recipe(recipes: Sequence[SavedRecipe], recipe_id: str) -> List[SavedRecipe]:
    find_recipe(recipes, recipe_id)
    return [r for r in recipes if r.id != recipe_id]


def rate_recipe(recipes: Sequence[SavedRecipe], recipe_id: str, rating: int) -> List[SavedRecipe]:
    validate_rating(rating)
    find_recipe(recipes, recipe_id)
    return [r.model_copy(update={"rating": rating}) if r.id == recipe_id else r for r in recipes]


# =========================================================
# Meal plan
# =========================================================
def add_to_meal_plan(plan: MealPlan, day: DayOfWeek, recipe: SavedRecipe) -> MealPlan:
    """Append a snapshot to a day. Returns ``plan`` itself when the id is already there."""
    day = DayOfWeek(day)
    meals = plan.meals_for(day)
    if any(r.id == recipe.id for r in meals):
        return plan
    return plan.model_copy(update={day.value: [*meals, recipe]})


def remove_from_meal_plan(plan: MealPlan, day: DayOfWeek, recipe_id: str) -> MealPlan:
    day = DayOfWeek(day)
    return plan.model_copy(update={day.value: [r for r in plan.meals_for(day) if r.id != recipe_id]})


def remove_from_all_days(plan: MealPlan, recipe_id: str) -> MealPlan:
    return plan.model_copy(
        update={day.value: [r for r in plan.meals_for(day) if r.id != recipe_id] for day in DayOfWeek}
    )


# =========================================================
# Recently viewed
# =========================================================
def record_view(
    history: Sequence[SavedRecipe], recipe: SavedRecipe, limit: int = RECENTLY_VIEWED_LIMIT
) -> List[SavedRecipe]:
    """Move ``recipe`` to the front, dropping any older occurrence, then cap the list."""
    return [recipe, *(r for r in history if r.id != recipe.id)][:limit]


# =========================================================
# Profile lists
# =========================================================
def add_unique(values: Sequence[str], value: str) -> List[str]:
    value = (value or "").strip()
    if not value or value in values:
        return list(values)
    return [*values, value]


def remove_at(values: Sequence[str], index: int) -> List[str]:
    if not 0 <= index < len(values):
        raise ValidationError(f"No entry at index {index}")
    return [v for i, v in enumerate(values) if i != index]


# =========================================================
# Search / filters
# =========================================================
def _matches_allergen(recipe: Recipe, allergies: Sequence[str]) -> bool:
    haystack = (" ".join(recipe.ingredient_names()) + recipe.title).lower()
    return any(allergen.lower() in haystack for allergen in allergies)


def _dietary_score(recipe: Recipe, restrictions: Sequence[str]) -> int:
    text = recipe.title + recipe.description
    return sum(1 for restriction in restrictions if restriction in text)


def filter_saved_recipes(
    recipes: Sequence[SavedRecipe],
    *,
    query: Optional[str] = None,
    category: str = ALL,
    cuisine: str = ALL,
    quick_only: bool = False,
    profile: Optional[UserProfile] = None,
) -> List[SavedRecipe]:
    """
    Library search.

    ``profile`` enables "match profile": recipes mentioning an allergen are dropped,
    then the rest are stably ordered by how many dietary restrictions they mention.
    """
    filtered = list(recipes)

    if query:
        q = query.lower()
        filtered = [r for r in filtered if q in r.title.lower() or q in r.description.lower()]

    if category != ALL:
        filtered = [r for r in filtered if r.category == category]
    if cuisine != ALL:
        filtered = [r for r in filtered if r.cuisine == cuisine]
    if quick_only:
        filtered = [r for r in filtered if is_quick(r.prepTime, r.cookTime)]

    if profile is not None:
        if profile.allergies:
            filtered = [r for r in filtered if not _matches_allergen(r, profile.allergies)]
        if profile.dietaryRestrictions:
            filtered.sort(key=lambda r: _dietary_score(r, profile.dietaryRestrictions), reverse=True)

    return filtered


def cuisines_of(recipes: Sequence[SavedRecipe]) -> List[str]:
    seen: List[str] = []
    for r in recipes:
        if r.cuisine and r.cuisine not in seen:
            seen.append(r.cuisine)
    return [ALL, *seen]


# =========================================================
# Share text
# =========================================================
def format_recipe_share_text(recipe: Recipe) -> str:
    ingredient_text = "\n".join(f"{ing.quantity or ''} {ing.name}".strip() for ing in recipe.ingredients)
    return f"{recipe.title}\n\n{recipe.description}\n\nIngredients:\n{ingredient_text}"


def format_meal_plan_summary(plan: MealPlan) -> str:
    summary = "My Weekly Meal Plan:\n\n"
    for day in DayOfWeek:
        meals = plan.meals_for(day)
        if meals:
            summary += f"{day.value}:\n"
            summary += "".join(f" - {m.title}\n" for m in meals)
            summary += "\n"
    return summary


def format_shopping_list(categories: Sequence[ShoppingCategory]) -> str:
    return "\n\n".join(
        f"{cat.category}:\n" + "\n".join(f" - {item.name}" for item in cat.items) for cat in categories
    )
