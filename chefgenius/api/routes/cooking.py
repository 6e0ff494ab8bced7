"""Cooking mode endpoints."""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from chefgenius.api.dependencies import get_kitchen
from chefgenius.middleware.rate_limit import rate_limit_dependency
from chefgenius.models.cooking import CookingSnapshot
from chefgenius.services.kitchen import KitchenSession

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/cooking", tags=["cooking"], dependencies=[Depends(rate_limit_dependency)])

# Upper bound on waiting for the listener to act on a pushed utterance
UTTERANCE_HANDLING_TIMEOUT_S = 5.0


class TimerRequest(BaseModel):
    seconds: Optional[int] = Field(None, gt=0, description="Defaults to the duration found in the current step")


class Utterance(BaseModel):
    text: str = Field(..., max_length=500)


@router.post("/start", response_model=CookingSnapshot)
async def start_cooking(kitchen: KitchenSession = Depends(get_kitchen)) -> CookingSnapshot:
    return kitchen.start_cooking()


@router.get("", response_model=CookingSnapshot)
async def cooking_state(kitchen: KitchenSession = Depends(get_kitchen)) -> CookingSnapshot:
    return kitchen.cooking_snapshot()


@router.post("/next", response_model=CookingSnapshot)
async def next_step(kitchen: KitchenSession = Depends(get_kitchen)) -> CookingSnapshot:
    kitchen.require_cooking().next()
    return kitchen.cooking_snapshot()


@router.post("/previous", response_model=CookingSnapshot)
async def previous_step(kitchen: KitchenSession = Depends(get_kitchen)) -> CookingSnapshot:
    kitchen.require_cooking().previous()
    return kitchen.cooking_snapshot()


@router.post("/timer", response_model=CookingSnapshot)
async def start_timer(body: Optional[TimerRequest] = None, kitchen: KitchenSession = Depends(get_kitchen)) -> CookingSnapshot:
    kitchen.require_cooking().start_timer(body.seconds if body else None)
    return kitchen.cooking_snapshot()


@router.delete("/timer", response_model=CookingSnapshot)
async def cancel_timer(kitchen: KitchenSession = Depends(get_kitchen)) -> CookingSnapshot:
    kitchen.require_cooking().cancel_timer()
    return kitchen.cooking_snapshot()


@router.post("/checklist/{name}", response_model=CookingSnapshot)
async def toggle_checklist_item(name: str, kitchen: KitchenSession = Depends(get_kitchen)) -> CookingSnapshot:
    kitchen.require_cooking().toggle_checklist(name)
    return kitchen.cooking_snapshot()


@router.post("/voice", response_model=CookingSnapshot)
async def toggle_voice(kitchen: KitchenSession = Depends(get_kitchen)) -> CookingSnapshot:
    kitchen.toggle_voice()
    return kitchen.cooking_snapshot()


@router.post("/voice/utterances")
async def push_utterance(body: Utterance, kitchen: KitchenSession = Depends(get_kitchen)) -> Dict[str, Any]:
    """Deliver a finalized utterance to the recognition stream, if one is listening."""
    kitchen.require_cooking()
    delivered = kitchen.utterances.publish(body.text)
    if delivered:
        try:
            await asyncio.wait_for(kitchen.utterances.join(), timeout=UTTERANCE_HANDLING_TIMEOUT_S)
        except asyncio.TimeoutError:
            logger.warning("Voice listener did not handle %r in time", body.text)
    return {"delivered": bool(delivered), "state": kitchen.cooking_snapshot()}


@router.post("/exit")
async def exit_cooking(kitchen: KitchenSession = Depends(get_kitchen)) -> Dict[str, str]:
    kitchen.exit_cooking()
    return {"stage": kitchen.stage.value}
