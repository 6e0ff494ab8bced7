"""Tests for voice command interpretation and the listener lifecycle."""

import asyncio

import pytest

from chefgenius.services.cooking import VoiceCommand
from chefgenius.services.voice import (
    AvailableRecognition,
    UnavailableRecognition,
    UtteranceFeed,
    VoiceController,
    interpret_command,
)


@pytest.mark.parametrize(
    "utterance,expected",
    [
        ("Next step please", VoiceCommand.NEXT),
        ("go BACK", VoiceCommand.PREVIOUS),
        ("previous", VoiceCommand.PREVIOUS),
        ("start timer", VoiceCommand.START_TIMER),
        ("Begin Timer now", VoiceCommand.START_TIMER),
        ("go back to the next one", VoiceCommand.NEXT),
        ("start the timer", None),
        ("what's for dinner", None),
        ("", None),
    ],
)
def test_interpret_command(utterance, expected):
    assert interpret_command(utterance) is expected


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_unavailable_recognition_is_a_silent_toggle():
    commands = []
    voice = VoiceController(UnavailableRecognition(), commands.append)

    assert voice.toggle() is True
    assert voice.enabled
    assert not voice.available
    assert voice.toggle() is False
    assert commands == []


@pytest.mark.asyncio
async def test_listener_dispatches_commands_until_disabled():
    feed = UtteranceFeed()
    commands = []
    voice = VoiceController(AvailableRecognition(feed.stream), commands.append)

    voice.enable()
    await settle()
    assert feed.listeners == 1

    feed.publish("next")
    feed.publish("hello there")
    feed.publish("go back")
    await asyncio.wait_for(feed.join(), timeout=1)
    assert commands == [VoiceCommand.NEXT, VoiceCommand.PREVIOUS]

    voice.disable()
    await settle()
    assert feed.listeners == 0
    assert feed.publish("next") == 0
    assert commands == [VoiceCommand.NEXT, VoiceCommand.PREVIOUS]


@pytest.mark.asyncio
async def test_handle_released_once_across_exit_paths():
    released = []
    started = asyncio.Event()

    async def stream():
        started.set()
        try:
            while True:
                await asyncio.sleep(3600)
                yield "never"
        finally:
            released.append(True)

    voice = VoiceController(AvailableRecognition(stream), lambda c: None)
    voice.enable()
    await started.wait()

    voice.disable()
    voice.disable()
    await settle()
    assert released == [True]
    assert not voice.enabled


@pytest.mark.asyncio
async def test_stream_error_disables_voice():
    async def broken():
        yield "next"
        raise RuntimeError("microphone unplugged")

    commands = []
    voice = VoiceController(AvailableRecognition(broken), commands.append)
    voice.enable()
    await settle()

    assert commands == [VoiceCommand.NEXT]
    assert not voice.enabled


@pytest.mark.asyncio
async def test_failing_command_does_not_stop_listener():
    feed = UtteranceFeed()
    seen = []

    def on_command(command):
        seen.append(command)
        if len(seen) == 1:
            raise ValueError("boom")

    voice = VoiceController(AvailableRecognition(feed.stream), on_command)
    voice.enable()
    await settle()

    feed.publish("next")
    feed.publish("next")
    await asyncio.wait_for(feed.join(), timeout=1)

    assert seen == [VoiceCommand.NEXT, VoiceCommand.NEXT]
    assert voice.enabled
    voice.disable()
