"""Fridge photo analysis and ingredient confirmation."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, File, Request, UploadFile
from pydantic import BaseModel, Field

from chefgenius.api.dependencies import get_kitchen
from chefgenius.middleware.rate_limit import rate_limit_dependency
from chefgenius.services.image_service import ImageService
from chefgenius.services.kitchen import KitchenSession

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ingredients", tags=["ingredients"], dependencies=[Depends(rate_limit_dependency)])


class IngredientEntry(BaseModel):
    name: str = Field(..., max_length=200)


class MoveRequest(BaseModel):
    source: int = Field(..., ge=0, description="Current index")
    target: int = Field(..., ge=0, description="Index to move to")


def _ingredients_response(kitchen: KitchenSession) -> Dict[str, Any]:
    return {"ingredients": kitchen.ingredients, "stage": kitchen.stage.value}


@router.post("/detect")
async def detect_ingredients(
    request: Request,
    file: UploadFile = File(..., description="Fridge or pantry photo"),
    kitchen: KitchenSession = Depends(get_kitchen),
) -> Dict[str, Any]:
    logger.info(
        "Route /ingredients/detect called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": "/ingredients/detect",
            "params": {"filename": file.filename, "content_type": file.content_type},
        },
    )
    image_data, mime_type = ImageService.validate_image(await file.read(), file.filename or "")
    await kitchen.detect_ingredients(image_data, mime_type)
    return _ingredients_response(kitchen)


@router.get("")
async def list_ingredients(kitchen: KitchenSession = Depends(get_kitchen)) -> Dict[str, Any]:
    return _ingredients_response(kitchen)


@router.post("")
async def add_ingredient(entry: IngredientEntry, kitchen: KitchenSession = Depends(get_kitchen)) -> Dict[str, Any]:
    kitchen.add_ingredient(entry.name)
    return _ingredients_response(kitchen)


@router.delete("/{index}")
async def remove_ingredient(index: int, kitchen: KitchenSession = Depends(get_kitchen)) -> Dict[str, Any]:
    kitchen.remove_ingredient(index)
    return _ingredients_response(kitchen)


@router.post("/move")
async def move_ingredient(move: MoveRequest, kitchen: KitchenSession = Depends(get_kitchen)) -> Dict[str, Any]:
    kitchen.move_ingredient(move.source, move.target)
    return _ingredients_response(kitchen)
