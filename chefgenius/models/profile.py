"""User profile model and option catalogs."""

from typing import List
from pydantic import BaseModel, ConfigDict, Field

DIETARY_OPTIONS = ["Vegetarian", "Vegan", "Gluten-Free", "Keto", "Paleo", "Dairy-Free"]
ALLERGY_OPTIONS = ["Peanuts", "Tree Nuts", "Dairy", "Eggs", "Shellfish", "Soy", "Wheat"]
DEFAULT_PANTRY_STAPLES = ["Salt", "Pepper", "Olive Oil", "Water", "Sugar", "Flour"]


class UserProfile(BaseModel):
    """Cooking preferences of the single session user."""

    model_config = ConfigDict(frozen=True)

    dietaryRestrictions: List[str] = Field(default_factory=list, description="e.g. Vegan, Keto")
    allergies: List[str] = Field(default_factory=list, description="Allergens every recipe must avoid")
    cuisinePreferences: List[str] = Field(default_factory=list, description="Preferred cuisines")
    customIngredients: List[str] = Field(
        default_factory=list, description="Always added to the ingredients sent for synthesis"
    )
    pantryStaples: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PANTRY_STAPLES),
        description="Always left off generated shopping lists",
    )
