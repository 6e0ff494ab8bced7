"""Weekly meal plan model."""

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from chefgenius.models.recipe import SavedRecipe


class DayOfWeek(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class MealPlan(BaseModel):
    """Seven day buckets of saved-recipe snapshots, copied at insertion time."""

    model_config = ConfigDict(frozen=True)

    Monday: List[SavedRecipe] = Field(default_factory=list)
    Tuesday: List[SavedRecipe] = Field(default_factory=list)
    Wednesday: List[SavedRecipe] = Field(default_factory=list)
    Thursday: List[SavedRecipe] = Field(default_factory=list)
    Friday: List[SavedRecipe] = Field(default_factory=list)
    Saturday: List[SavedRecipe] = Field(default_factory=list)
    Sunday: List[SavedRecipe] = Field(default_factory=list)

    def meals_for(self, day: DayOfWeek) -> List[SavedRecipe]:
        return getattr(self, DayOfWeek(day).value)
