"""Recipe synthesis, substitutions, shopping list and read-aloud endpoints."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from chefgenius.api.dependencies import get_kitchen
from chefgenius.middleware.rate_limit import rate_limit_dependency
from chefgenius.services import library
from chefgenius.services.kitchen import KitchenSession
from chefgenius.utils.validators import validate_ingredients_list

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/recipes", tags=["recipes"], dependencies=[Depends(rate_limit_dependency)])


class SynthesisRequest(BaseModel):
    ingredients: Optional[List[str]] = Field(
        None, description="Replaces the working ingredient list when given"
    )


class SubstitutionRequest(BaseModel):
    ingredient: str = Field(..., min_length=1, max_length=200)


class SpeechRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)


def _current_response(kitchen: KitchenSession) -> Dict[str, Any]:
    return {
        "stage": kitchen.stage.value,
        "recipe": kitchen.recipe,
        "prices": kitchen.prices,
        "imageUrl": kitchen.image_url,
        "substitutions": kitchen.substitutions.answers,
        "shoppingList": kitchen.shopping_list,
        "error": kitchen.error,
    }


@router.post("/synthesize")
async def synthesize_recipe(
    request: Request,
    body: SynthesisRequest,
    kitchen: KitchenSession = Depends(get_kitchen),
) -> Dict[str, Any]:
    ingredients = None
    if body.ingredients is not None:
        ingredients = [i.strip() for i in body.ingredients if i and i.strip()]
        if ingredients:
            ingredients = validate_ingredients_list(ingredients)

    logger.info(
        "Route /recipes/synthesize called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": "/recipes/synthesize",
            "params": {"ingredients": ingredients if ingredients is not None else kitchen.ingredients},
        },
    )
    await kitchen.synthesize(ingredients)
    return _current_response(kitchen)


@router.get("/current")
async def current_recipe(kitchen: KitchenSession = Depends(get_kitchen)) -> Dict[str, Any]:
    return _current_response(kitchen)


@router.post("/current/substitutions")
async def substitution(body: SubstitutionRequest, kitchen: KitchenSession = Depends(get_kitchen)) -> Dict[str, str]:
    answer = await kitchen.get_substitution(body.ingredient)
    return {"ingredient": body.ingredient, "substitution": answer}


@router.post("/current/shopping-list")
async def shopping_list(kitchen: KitchenSession = Depends(get_kitchen)) -> Dict[str, Any]:
    categories = await kitchen.generate_shopping_list()
    return {
        "categories": categories,
        "shareText": library.format_shopping_list(categories),
    }


@router.get("/current/share")
async def share_recipe(kitchen: KitchenSession = Depends(get_kitchen)) -> Dict[str, str]:
    return {"text": kitchen.share_text()}


@router.post("/speech")
async def read_aloud(body: SpeechRequest, kitchen: KitchenSession = Depends(get_kitchen)) -> Dict[str, Any]:
    frames = await kitchen.read_aloud(body.text)
    return {"samples": frames, "playing": kitchen.speech.is_playing}
