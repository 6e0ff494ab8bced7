"""User profile endpoints."""

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from chefgenius.api.dependencies import get_store
from chefgenius.middleware.rate_limit import rate_limit_dependency
from chefgenius.models.profile import ALLERGY_OPTIONS, DIETARY_OPTIONS, UserProfile
from chefgenius.services.library import RECIPE_CATEGORIES
from chefgenius.services.persistence import PersistenceStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/profile", tags=["profile"], dependencies=[Depends(rate_limit_dependency)])


class ProfileEntry(BaseModel):
    value: str = Field(..., min_length=1, max_length=200)


@router.get("", response_model=UserProfile)
async def get_profile(store: PersistenceStore = Depends(get_store)) -> UserProfile:
    return store.profile


@router.put("", response_model=UserProfile)
async def replace_profile(
    request: Request,
    profile: UserProfile,
    store: PersistenceStore = Depends(get_store),
) -> UserProfile:
    logger.info(
        "Route PUT /profile called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": "/profile",
            "params": {"allergies": profile.allergies, "dietary": profile.dietaryRestrictions},
        },
    )
    return store.update_profile(profile)


@router.get("/options")
async def profile_options() -> Dict[str, List[str]]:
    return {
        "dietaryOptions": DIETARY_OPTIONS,
        "allergyOptions": ALLERGY_OPTIONS,
        "recipeCategories": RECIPE_CATEGORIES,
    }


@router.post("/custom-ingredients", response_model=UserProfile)
async def add_custom_ingredient(entry: ProfileEntry, store: PersistenceStore = Depends(get_store)) -> UserProfile:
    return store.add_custom_ingredient(entry.value)


@router.delete("/custom-ingredients/{index}", response_model=UserProfile)
async def remove_custom_ingredient(index: int, store: PersistenceStore = Depends(get_store)) -> UserProfile:
    return store.remove_custom_ingredient(index)


@router.post("/pantry-staples", response_model=UserProfile)
async def add_pantry_staple(entry: ProfileEntry, store: PersistenceStore = Depends(get_store)) -> UserProfile:
    return store.add_pantry_staple(entry.value)


@router.delete("/pantry-staples/{index}", response_model=UserProfile)
async def remove_pantry_staple(index: int, store: PersistenceStore = Depends(get_store)) -> UserProfile:
    return store.remove_pantry_staple(index)
