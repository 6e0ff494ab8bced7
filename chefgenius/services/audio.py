"""Speech audio: PCM decoding and exclusive playback."""

import asyncio
import logging
from typing import Callable, Optional, Protocol

import numpy as np

logger = logging.getLogger(__name__)

SAMPLE_RATE = 24000
NUM_CHANNELS = 1


def decode_pcm16(data: bytes, num_channels: int = NUM_CHANNELS) -> np.ndarray:
    """
    Decode interleaved 16-bit signed little-endian PCM into float samples.

    Args:
        data: Raw PCM bytes; a trailing odd byte is dropped
        num_channels: Interleaved channel count

    Returns:
        Array of shape (num_channels, frames) with values in [-1.0, 1.0)
    """
    usable = len(data) - len(data) % (2 * num_channels)
    samples = np.frombuffer(data[:usable], dtype="<i2")
    return samples.reshape(-1, num_channels).T.astype(np.float32) / 32768.0


class Playback(Protocol):
    """A started audio source."""

    @property
    def active(self) -> bool:
        ...

    def stop(self) -> None:
        ...


class AudioSink(Protocol):
    """Something that can play decoded samples."""

    def play(self, samples: np.ndarray, sample_rate: int, on_ended: Callable[[], None]) -> Playback:
        ...


class _TimedPlayback:
    def __init__(self, duration: float, on_ended: Callable[[], None]) -> None:
        self._on_ended = on_ended
        self._active = True
        self._timer = asyncio.get_running_loop().call_later(duration, self._finish)

    @property
    def active(self) -> bool:
        return self._active

    def _finish(self) -> None:
        if self._active:
            self._active = False
            self._on_ended()

    def stop(self) -> None:
        self._timer.cancel()
        self._finish()


class TimedAudioSink:
    """
    Headless sink: the service has no speaker of its own, so a playback is simply
    "active" for the length of the clip. Clients fetch the audio separately.
    """

    def play(self, samples: np.ndarray, sample_rate: int, on_ended: Callable[[], None]) -> Playback:
        duration = samples.shape[-1] / float(sample_rate)
        logger.info("Playing %.2fs of speech", duration)
        return _TimedPlayback(duration, on_ended)


class SpeechPlayer:
    """Tracks a single audio source; starting a new one stops the previous first."""

    def __init__(self, sink: Optional[AudioSink] = None, sample_rate: int = SAMPLE_RATE) -> None:
        self._sink = sink or TimedAudioSink()
        self._sample_rate = sample_rate
        self._current: Optional[Playback] = None

    @property
    def is_playing(self) -> bool:
        return self._current is not None and self._current.active

    def play_pcm(self, data: bytes) -> int:
        """Decode and play raw speech bytes. Returns the number of frames started."""
        samples = decode_pcm16(data)
        self.stop()
        playback: Optional[Playback] = None

        def _ended() -> None:
            if playback is not None and self._current is playback:
                self._current = None

        playback = self._sink.play(samples, self._sample_rate, _ended)
        self._current = playback
        return samples.shape[-1]

    def stop(self) -> None:
        current, self._current = self._current, None
        if current is not None and current.active:
            current.stop()
