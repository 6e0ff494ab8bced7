"""Release-once handles for scoped resources (timer ticks, voice streams)."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class ResourceHandle:
    """Wraps a cleanup callable so it runs exactly once, whatever the exit path."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Optional[Callable[[], None]] = release

    @property
    def released(self) -> bool:
        return self._release is None

    def release(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self) -> "ResourceHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class TickScheduler(Protocol):
    """Schedules a recurring callback; the callback returns False to stop."""

    def schedule(self, callback: Callable[[], bool], interval: float) -> ResourceHandle:
        ...


class AsyncioTickScheduler:
    """Runs the callback from an asyncio task on the running event loop."""

    def __init__(self, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep) -> None:
        self._sleep = sleep

    def schedule(self, callback: Callable[[], bool], interval: float) -> ResourceHandle:
        async def _run() -> None:
            while True:
                await self._sleep(interval)
                if not callback():
                    return

        task = asyncio.get_running_loop().create_task(_run())
        return ResourceHandle(task.cancel)


def spawn(coro: Awaitable[None], *, name: str) -> "asyncio.Task[None]":
    """Start a fire-and-forget task that logs instead of losing its failure."""
    task = asyncio.ensure_future(coro)
    _background_tasks.add(task)

    def _done(t: "asyncio.Task[None]") -> None:
        _background_tasks.discard(t)
        if t.cancelled():
            return
        exc = t.exception()
        if exc is not None:
            logger.warning("Background task %s failed: %s", name, exc, exc_info=exc)

    task.add_done_callback(_done)
    return task


# Strong references so pending tasks are not garbage-collected mid-flight
_background_tasks: "set[asyncio.Task[None]]" = set()
