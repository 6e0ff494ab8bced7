"""Weekly meal plan endpoints."""

from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from chefgenius.api.dependencies import get_store
from chefgenius.middleware.rate_limit import rate_limit_dependency
from chefgenius.models.meal_plan import DayOfWeek, MealPlan
from chefgenius.services import library
from chefgenius.services.persistence import PersistenceStore

router = APIRouter(prefix="/meal-plan", tags=["meal-plan"], dependencies=[Depends(rate_limit_dependency)])


class PlanEntry(BaseModel):
    recipeId: str


@router.get("", response_model=MealPlan)
async def get_meal_plan(store: PersistenceStore = Depends(get_store)) -> MealPlan:
    return store.meal_plan


@router.get("/share")
async def share_meal_plan(store: PersistenceStore = Depends(get_store)) -> Dict[str, str]:
    return {"text": library.format_meal_plan_summary(store.meal_plan)}


@router.post("/{day}", response_model=MealPlan)
async def add_to_meal_plan(day: DayOfWeek, entry: PlanEntry, store: PersistenceStore = Depends(get_store)) -> MealPlan:
    return store.add_to_meal_plan(day, entry.recipeId)


@router.delete("/{day}/{recipe_id}", response_model=MealPlan)
async def remove_from_meal_plan(
    day: DayOfWeek, recipe_id: str, store: PersistenceStore = Depends(get_store)
) -> MealPlan:
    return store.remove_from_meal_plan(day, recipe_id)
