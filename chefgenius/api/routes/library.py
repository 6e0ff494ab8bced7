"""Saved recipe library endpoints."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, Field

from chefgenius.api.dependencies import get_kitchen, get_store
from chefgenius.middleware.rate_limit import rate_limit_dependency
from chefgenius.models.recipe import SavedRecipe
from chefgenius.services import library
from chefgenius.services.kitchen import KitchenSession
from chefgenius.services.persistence import PersistenceStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/library", tags=["library"], dependencies=[Depends(rate_limit_dependency)])


class SaveRequest(BaseModel):
    category: str = Field("Favorites", description="One of the recipe categories")
    customCategory: Optional[str] = Field(None, description="Used when category is Other")
    sourceUrl: Optional[str] = Field(None, description="Overrides the recipe's own source URL")


class RatingRequest(BaseModel):
    rating: int = Field(..., description="Whole stars, 0 to 5")


@router.get("")
async def list_saved_recipes(
    q: Optional[str] = Query(None, description="Text search over title and description"),
    category: str = Query(library.ALL),
    cuisine: str = Query(library.ALL),
    quick: bool = Query(False, description="Only recipes with prep + cook of 30 minutes or less"),
    match_profile: bool = Query(False, alias="matchProfile"),
    store: PersistenceStore = Depends(get_store),
) -> Dict[str, Any]:
    recipes = library.filter_saved_recipes(
        store.saved_recipes,
        query=q,
        category=category,
        cuisine=cuisine,
        quick_only=quick,
        profile=store.profile if match_profile else None,
    )
    return {
        "recipes": recipes,
        "total": len(store.saved_recipes),
        "cuisines": library.cuisines_of(store.saved_recipes),
    }


@router.post("", response_model=SavedRecipe, status_code=status.HTTP_201_CREATED)
async def save_current_recipe(
    request: Request,
    body: SaveRequest,
    kitchen: KitchenSession = Depends(get_kitchen),
) -> SavedRecipe:
    logger.info(
        "Route POST /library called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": "/library",
            "params": body.model_dump(),
        },
    )
    return kitchen.save_current(
        category=body.category,
        custom_category=body.customCategory,
        source_url=body.sourceUrl,
    )


@router.get("/recent", response_model=List[SavedRecipe])
async def recently_viewed(store: PersistenceStore = Depends(get_store)) -> List[SavedRecipe]:
    return store.recently_viewed


@router.post("/{recipe_id}/view", response_model=SavedRecipe)
async def view_saved_recipe(recipe_id: str, kitchen: KitchenSession = Depends(get_kitchen)) -> SavedRecipe:
    return kitchen.load_saved_recipe(recipe_id)


@router.put("/{recipe_id}/rating", response_model=SavedRecipe)
async def rate_saved_recipe(
    recipe_id: str, body: RatingRequest, store: PersistenceStore = Depends(get_store)
) -> SavedRecipe:
    return store.rate_recipe(recipe_id, body.rating)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_saved_recipe(recipe_id: str, store: PersistenceStore = Depends(get_store)) -> None:
    store.delete_recipe(recipe_id)
