"""Cooking-time detection in free-form text."""

import re
from typing import Optional

QUICK_RECIPE_MAX_SECONDS = 1800

# "5 minutes", "1 hr", "30 secs", "10min"
_DURATION_RE = re.compile(r"(\d+)\s*(minute|min|second|sec|hour|hr)", re.IGNORECASE)


def parse_duration(text: Optional[str]) -> Optional[int]:
    """
    Convert the first "<integer> <unit>" in ``text`` to seconds.

    Returns None when there is no recognizable duration.
    """
    if not text:
        return None

    match = _DURATION_RE.search(text)
    if not match:
        return None

    value = int(match.group(1))
    unit = match.group(2).lower()
    if unit.startswith("min"):
        return value * 60
    if unit.startswith("sec"):
        return value
    return value * 3600


def is_quick(prep_time: Optional[str], cook_time: Optional[str]) -> bool:
    """Prep plus cook fits in half an hour. Undetectable parts count as zero."""
    total = (parse_duration(prep_time) or 0) + (parse_duration(cook_time) or 0)
    return total <= QUICK_RECIPE_MAX_SECONDS


def format_time(seconds: int) -> str:
    """Render seconds as m:ss."""
    mins, secs = divmod(max(seconds, 0), 60)
    return f"{mins}:{secs:02d}"
