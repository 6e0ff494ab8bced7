"""Recipe Pydantic models."""

from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class IngredientRef(BaseModel):
    """Single ingredient line of a recipe."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Ingredient name")
    quantity: Optional[str] = Field(None, description="e.g. 2 cups, 1 tbsp")
    details: Optional[str] = Field(None, description="e.g. finely chopped, room temp")


class NutritionInfo(BaseModel):
    """Estimated nutrition per serving."""

    model_config = ConfigDict(frozen=True)

    calories: int = Field(..., description="Calories per serving")
    protein: str = Field(..., description="e.g. 20g")
    carbs: str = Field(..., description="e.g. 30g")
    fat: str = Field(..., description="e.g. 10g")


class Recipe(BaseModel):
    """Generated recipe. Never mutated in place; use ``model_copy(update=...)``."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="Recipe title")
    description: str = Field(..., description="Short appetizing description")
    ingredients: List[IngredientRef] = Field(..., description="Ordered ingredient list")
    instructions: List[str] = Field(..., min_length=1, description="Ordered steps; index is the step number")
    prepTime: str = Field(..., description="Free-form preparation time, e.g. '15 minutes'")
    cookTime: str = Field(..., description="Free-form cooking time, e.g. '1 hr'")
    servings: int = Field(..., description="Number of servings")
    cuisine: str = Field(..., description="Cuisine label, e.g. 'Italian'")
    nutrition: NutritionInfo = Field(..., description="Estimated nutrition per serving")
    sourceUrl: Optional[str] = Field(None, description="URL of the original recipe source, if any")

    @field_validator("ingredients", mode="before")
    @classmethod
    def _accept_bare_names(cls, value: Any) -> Any:
        """Older saved records store ingredients as plain strings."""
        if isinstance(value, list):
            return [{"name": item} if isinstance(item, str) else item for item in value]
        return value

    def ingredient_names(self) -> List[str]:
        return [ing.name for ing in self.ingredients]


class SavedRecipe(Recipe):
    """A recipe kept in the user's library."""

    id: str = Field(..., description="Unique id, sortable by creation time")
    category: str = Field(..., description="Library category label")
    savedAt: int = Field(..., description="Creation timestamp in epoch milliseconds")
    imageUrl: Optional[str] = Field(None, description="Generated dish image as a data URI")
    rating: int = Field(0, ge=0, le=5, description="User rating, 0-5 stars")
