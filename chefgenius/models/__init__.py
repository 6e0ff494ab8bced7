"""Pydantic models."""

from chefgenius.models.cooking import CookingSnapshot, Timer
from chefgenius.models.meal_plan import DayOfWeek, MealPlan
from chefgenius.models.profile import UserProfile
from chefgenius.models.recipe import (
    IngredientRef,
    NutritionInfo,
    Recipe,
    SavedRecipe,
)
from chefgenius.models.shopping import (
    GroundingCitation,
    PriceSearchResult,
    ShoppingCategory,
    ShoppingItem,
)

__all__ = [
    "CookingSnapshot",
    "DayOfWeek",
    "GroundingCitation",
    "IngredientRef",
    "MealPlan",
    "NutritionInfo",
    "PriceSearchResult",
    "Recipe",
    "SavedRecipe",
    "ShoppingCategory",
    "ShoppingItem",
    "Timer",
    "UserProfile",
]
