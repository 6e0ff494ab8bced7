"""Tests for the kitchen session flows outside synthesis."""

import asyncio

import pytest

from chefgenius.services.kitchen import KitchenSession, Stage
from chefgenius.services.voice import UnavailableRecognition
from chefgenius.utils.exceptions import GeminiError, NotFoundError, ValidationError


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_detect_moves_to_confirmation(kitchen):
    assert kitchen.stage is Stage.IDLE
    assert await kitchen.detect_ingredients(b"img", "image/jpeg") == ["eggs", "spinach"]
    assert kitchen.stage is Stage.INGREDIENT_CONFIRMATION


@pytest.mark.asyncio
async def test_detect_failure_returns_to_idle(kitchen, fake_gemini):
    fake_gemini.detected = GeminiError("vision down")
    with pytest.raises(GeminiError):
        await kitchen.detect_ingredients(b"img", "image/jpeg")
    assert kitchen.stage is Stage.IDLE
    assert kitchen.error


def test_ingredient_editing(kitchen):
    kitchen.add_ingredient(" eggs ")
    kitchen.add_ingredient("   ")
    kitchen.add_ingredient("milk")
    kitchen.add_ingredient("flour")
    assert kitchen.ingredients == ["eggs", "milk", "flour"]

    assert kitchen.move_ingredient(2, 0) == ["flour", "eggs", "milk"]
    assert kitchen.remove_ingredient(1) == ["flour", "milk"]
    with pytest.raises(ValidationError):
        kitchen.move_ingredient(0, 5)


@pytest.mark.asyncio
async def test_empty_synthesis_keeps_stage(kitchen, fake_gemini):
    with pytest.raises(ValidationError):
        await kitchen.synthesize([])
    assert kitchen.stage is Stage.IDLE
    assert fake_gemini.calls == []


def test_operations_needing_a_recipe(kitchen):
    with pytest.raises(NotFoundError):
        kitchen.start_cooking()
    with pytest.raises(NotFoundError):
        kitchen.save_current(category="Dinner")
    with pytest.raises(ValidationError):
        kitchen.cooking_snapshot()


@pytest.mark.asyncio
async def test_save_then_load_records_view(kitchen, store):
    await kitchen.synthesize(["eggs"])
    await settle()
    saved = kitchen.save_current(category="Other", custom_category="Brunch")
    assert saved.imageUrl == kitchen.image_url
    assert saved.category == "Brunch"

    await kitchen.get_substitution("spinach")
    loaded = kitchen.load_saved_recipe(saved.id)

    assert kitchen.recipe == loaded
    assert kitchen.prices is None
    assert kitchen.image_url == saved.imageUrl
    assert kitchen.substitutions.answers == {}
    assert [r.id for r in store.recently_viewed] == [saved.id]


@pytest.mark.asyncio
async def test_read_aloud_toggles(kitchen, fake_gemini, sink):
    assert await kitchen.read_aloud("Whisk the eggs.") == 24000
    assert kitchen.speech.is_playing

    assert await kitchen.read_aloud("Whisk the eggs.") == 0
    assert not kitchen.speech.is_playing
    assert len(fake_gemini.called("synthesize_speech")) == 1

    fake_gemini.speech = None
    assert await kitchen.read_aloud("Anything") == 0
    assert not kitchen.speech.is_playing


@pytest.mark.asyncio
async def test_cooking_with_voice_commands(kitchen, scheduler):
    await kitchen.synthesize(["eggs"])
    snapshot = kitchen.start_cooking()
    assert kitchen.stage is Stage.COOKING_MODE
    assert snapshot.step == 0
    assert snapshot.voiceAvailable

    assert kitchen.toggle_voice() is True
    await settle()

    for utterance in ("next please", "next", "start timer"):
        kitchen.utterances.publish(utterance)
    await asyncio.wait_for(kitchen.utterances.join(), timeout=1)

    snapshot = kitchen.cooking_snapshot()
    assert snapshot.step == 2
    assert snapshot.timer.secondsLeft == 600
    assert scheduler.active == 1

    kitchen.exit_cooking()
    await settle()
    assert kitchen.stage is Stage.VIEWING_RECIPE
    assert kitchen.cooking is None
    assert not kitchen.voice.enabled
    assert kitchen.utterances.listeners == 0
    assert scheduler.active == 0


@pytest.mark.asyncio
async def test_voice_unavailable_degrades_silently(fake_gemini, store, scheduler):
    kitchen = KitchenSession(fake_gemini, store, scheduler=scheduler, recognition=UnavailableRecognition())
    await kitchen.synthesize(["eggs"])
    kitchen.start_cooking()

    assert kitchen.toggle_voice() is True
    snapshot = kitchen.cooking_snapshot()
    assert snapshot.voiceEnabled
    assert not snapshot.voiceAvailable
    assert kitchen.utterances.publish("next") == 0
    assert kitchen.cooking.step == 0
    kitchen.close()
