"""
Hands-free cooking commands.

Speech recognition is a capability chosen once when voice mode is enabled:
``AvailableRecognition`` wraps a stream of finalized utterances,
``UnavailableRecognition`` turns voice mode into a silent no-op.
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, List, Optional, Union

from chefgenius.core.handles import ResourceHandle
from chefgenius.services.cooking import VoiceCommand

logger = logging.getLogger(__name__)


def interpret_command(utterance: str) -> Optional[VoiceCommand]:
    """Map an utterance to a command. First match wins: next, then back/previous, then timer."""
    text = (utterance or "").lower()
    if "next" in text:
        return VoiceCommand.NEXT
    if "back" in text or "previous" in text:
        return VoiceCommand.PREVIOUS
    if "start timer" in text or "begin timer" in text:
        return VoiceCommand.START_TIMER
    return None


class UnavailableRecognition:
    available = False


class AvailableRecognition:
    available = True

    def __init__(self, open_stream: Callable[[], AsyncIterator[str]]) -> None:
        self._open_stream = open_stream

    def open(self) -> AsyncIterator[str]:
        return self._open_stream()


SpeechRecognition = Union[AvailableRecognition, UnavailableRecognition]


class UtteranceFeed:
    """
    In-process source of finalized utterances, pushed in over HTTP.

    Every open stream gets its own queue; ``join`` waits until each pushed utterance
    has been handled by its listener.
    """

    def __init__(self) -> None:
        self._queues: List[asyncio.Queue] = []

    @property
    def listeners(self) -> int:
        return len(self._queues)

    def publish(self, utterance: str) -> int:
        for queue in self._queues:
            queue.put_nowait(utterance)
        return len(self._queues)

    async def join(self) -> None:
        await asyncio.gather(*(queue.join() for queue in list(self._queues)))

    async def stream(self) -> AsyncIterator[str]:
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append(queue)
        try:
            while True:
                utterance = await queue.get()
                try:
                    yield utterance
                finally:
                    queue.task_done()
        finally:
            self._queues.remove(queue)
            while not queue.empty():
                queue.get_nowait()
                queue.task_done()


class VoiceController:
    """Owns the listener task. Its handle is released exactly once on disable, exit or stream error."""

    def __init__(self, recognition: SpeechRecognition, on_command: Callable[[VoiceCommand], None]) -> None:
        self._recognition = recognition
        self._on_command = on_command
        self._enabled = False
        self._handle: Optional[ResourceHandle] = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def available(self) -> bool:
        return self._recognition.available

    def toggle(self) -> bool:
        if self._enabled:
            self.disable()
        else:
            self.enable()
        return self._enabled

    def enable(self) -> None:
        if self._enabled:
            return
        self._enabled = True
        if not isinstance(self._recognition, AvailableRecognition):
            logger.info("Speech recognition unavailable; voice mode is a no-op")
            return

        task = asyncio.get_running_loop().create_task(self._listen(self._recognition.open()))

        def _release() -> None:
            if not task.done() and task is not asyncio.current_task():
                task.cancel()
            logger.info("Voice listener stopped")

        self._handle = ResourceHandle(_release)
        logger.info("Voice listener started")

    def disable(self) -> None:
        self._enabled = False
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.release()

    async def _listen(self, stream: AsyncIterator[str]) -> None:
        try:
            async for utterance in stream:
                command = interpret_command(utterance)
                if command is None:
                    logger.debug("Ignoring utterance %r", utterance)
                    continue
                logger.info("Voice command %s", command.value)
                try:
                    self._on_command(command)
                except Exception as e:
                    logger.warning("Voice command %s failed: %s", command.value, e)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Speech recognition stream failed: %s", e, exc_info=True)
        self.disable()
