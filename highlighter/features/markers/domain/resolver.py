import math
import re
from typing import Any, Mapping, Optional

# "00:03:16.099" (the fraction is optional)
_TIMECODE_RE = re.compile(r"^\s*(\d+):(\d{1,2}):(\d{1,2})(?:\.(\d+))?\s*$")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _accept(seconds: Optional[float]) -> Optional[float]:
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        return None
    return seconds


def parse_timecode(value: str) -> Optional[float]:
    """HH:MM:SS.fraction -> seconds, or None if it does not parse."""
    match = _TIMECODE_RE.match(value)
    if not match:
        return None
    hours, minutes, seconds, fraction = match.groups()
    total = int(hours) * 3600 + int(minutes) * 60 + int(seconds)
    if fraction:
        total += float(f"0.{fraction}")
    return float(total)


def resolve_elapsed_seconds(status: Mapping[str, Any]) -> Optional[float]:
    """
    Elapsed recording time from a recorder status, or None if unresolvable.

    Precedence, first finite non-negative value wins:
    1. outputTimecode as "HH:MM:SS.fraction"
    2. outputTimecode as integer nanoseconds
    3. outputDuration in milliseconds

    A status that says no recording is active always yields None.
    """
    if "outputActive" in status and not status["outputActive"]:
        return None

    timecode = status.get("outputTimecode")
    if isinstance(timecode, str):
        seconds = _accept(parse_timecode(timecode))
        if seconds is not None:
            return seconds
    elif _is_number(timecode):
        seconds = _accept(timecode / 1e9)
        if seconds is not None:
            return seconds

    duration = status.get("outputDuration")
    if _is_number(duration):
        seconds = _accept(duration / 1000)
        if seconds is not None:
            return seconds

    return None
