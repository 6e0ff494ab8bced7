"""Cooking mode models."""

from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class Timer(BaseModel):
    """Countdown for the current step. Present while running or just expired."""

    model_config = ConfigDict(frozen=True)

    secondsLeft: int = Field(..., ge=0, description="Remaining seconds")
    duration: int = Field(..., gt=0, description="Initial length in seconds")
    isActive: bool = Field(True, description="False once the countdown has expired")


class CookingSnapshot(BaseModel):
    """Read-only view of a cooking session, for rendering."""

    step: int = Field(..., description="Current 0-based step index")
    stepCount: int = Field(..., description="Number of instructions")
    instruction: str = Field(..., description="Text of the current instruction")
    progressPercent: float = Field(..., description="Percent of steps reached, 1-based")
    suggestedTimerSeconds: Optional[int] = Field(
        None, description="Duration detected in the current instruction, if no timer is running"
    )
    timer: Optional[Timer] = None
    timerDisplay: Optional[str] = Field(None, description="Remaining time as m:ss")
    voiceEnabled: bool = False
    voiceAvailable: bool = Field(False, description="False when voice mode degraded to a no-op")
    checklist: Dict[str, bool] = Field(default_factory=dict)
