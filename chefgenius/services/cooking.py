"""Cooking mode: step cursor, countdown timer and ingredient checklist."""

import logging
from enum import Enum
from typing import Dict, List, Optional

from chefgenius.core.handles import ResourceHandle, TickScheduler
from chefgenius.models.cooking import CookingSnapshot, Timer
from chefgenius.utils.durations import format_time, parse_duration
from chefgenius.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

TICK_INTERVAL_SECONDS = 1.0


class VoiceCommand(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"
    START_TIMER = "start_timer"


class CookingSession:
    """
    Step-by-step walk through a recipe's instructions.

    The step cursor always stays in ``[0, N-1]``. Moving between steps clears the
    timer and stops its tick. The checklist dict is owned by the caller so it can
    outlive a single cooking session for the same recipe.
    """

    def __init__(
        self,
        instructions: List[str],
        scheduler: TickScheduler,
        *,
        checklist: Optional[Dict[str, bool]] = None,
        tick_interval: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        if not instructions:
            raise ValidationError("Recipe has no instructions to cook")
        self.instructions = list(instructions)
        self.step = 0
        self.timer: Optional[Timer] = None
        self.checklist: Dict[str, bool] = checklist if checklist is not None else {}
        self._scheduler = scheduler
        self._tick_interval = tick_interval
        self._ticker: Optional[ResourceHandle] = None

    @property
    def step_count(self) -> int:
        return len(self.instructions)

    @property
    def current_instruction(self) -> str:
        return self.instructions[self.step]

    @property
    def timer_active(self) -> bool:
        return self.timer is not None and self.timer.isActive

    @property
    def suggested_timer_seconds(self) -> Optional[int]:
        return parse_duration(self.current_instruction)

    # -------------------------
    # Transitions
    # -------------------------
    def next(self) -> int:
        if self.step < self.step_count - 1:
            self.step += 1
        self._clear_timer()
        return self.step

    def previous(self) -> int:
        if self.step > 0:
            self.step -= 1
        self._clear_timer()
        return self.step

    def start_timer(self, seconds: Optional[int] = None) -> Timer:
        """Start a countdown; ``seconds`` defaults to the duration found in the current step."""
        if self.timer_active:
            raise ValidationError("A timer is already running for this step")

        if seconds is None:
            seconds = self.suggested_timer_seconds
            if seconds is None:
                raise ValidationError("No duration found in the current step; pass seconds explicitly")
        if seconds <= 0:
            raise ValidationError("Timer length must be a positive number of seconds")

        self._stop_ticker()
        self.timer = Timer(secondsLeft=seconds, duration=seconds, isActive=True)
        self._ticker = self._scheduler.schedule(self.tick, self._tick_interval)
        logger.info("Timer started for %ss on step %d", seconds, self.step)
        return self.timer

    def cancel_timer(self) -> None:
        self._clear_timer()

    def tick(self) -> bool:
        """Advance the timer by one second. Returns False once there is nothing left to count."""
        timer = self.timer
        if timer is None or not timer.isActive:
            return False
        if timer.secondsLeft <= 1:
            self.timer = timer.model_copy(update={"secondsLeft": 0, "isActive": False})
            logger.info("Timer expired on step %d", self.step)
            return False
        self.timer = timer.model_copy(update={"secondsLeft": timer.secondsLeft - 1})
        return True

    def toggle_checklist(self, name: str) -> bool:
        self.checklist[name] = not self.checklist.get(name, False)
        return self.checklist[name]

    def apply_command(self, command: VoiceCommand) -> None:
        """Run a recognized voice command. A timer request without a detectable duration is ignored."""
        if command is VoiceCommand.NEXT:
            self.next()
        elif command is VoiceCommand.PREVIOUS:
            self.previous()
        elif command is VoiceCommand.START_TIMER:
            seconds = self.suggested_timer_seconds
            if seconds is None or self.timer_active:
                logger.info("Ignoring voice timer request on step %d", self.step)
                return
            self.start_timer(seconds)

    def close(self) -> None:
        self._clear_timer()

    # -------------------------
    # Rendering
    # -------------------------
    def snapshot(self, *, voice_enabled: bool = False, voice_available: bool = False) -> CookingSnapshot:
        return CookingSnapshot(
            step=self.step,
            stepCount=self.step_count,
            instruction=self.current_instruction,
            progressPercent=round((self.step + 1) / self.step_count * 100, 1),
            suggestedTimerSeconds=None if self.timer_active else self.suggested_timer_seconds,
            timer=self.timer,
            timerDisplay=format_time(self.timer.secondsLeft) if self.timer else None,
            voiceEnabled=voice_enabled,
            voiceAvailable=voice_available,
            checklist=dict(self.checklist),
        )

    def _clear_timer(self) -> None:
        self._stop_ticker()
        self.timer = None

    def _stop_ticker(self) -> None:
        ticker, self._ticker = self._ticker, None
        if ticker is not None:
            ticker.release()
