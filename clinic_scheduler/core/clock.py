import re

from clinic_scheduler.core.errors import InvalidArgument

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def time_to_minutes(value: str) -> int:
    """Minutes since midnight for a zero-padded ``HH:MM`` string."""
    if not isinstance(value, str):
        raise InvalidArgument(f"Expected an HH:MM string, got {value!r}")
    match = _TIME_RE.match(value)
    if not match:
        raise InvalidArgument(f"Malformed time {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time(minutes: int) -> str:
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise InvalidArgument(f"{minutes} minutes is outside a single day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def check_interval(start_time: str, end_time: str) -> None:
    """Raise unless both times are well formed and ``start_time`` comes strictly first."""
    if time_to_minutes(start_time) >= time_to_minutes(end_time):
        raise InvalidArgument(f"Start {start_time} must be before end {end_time}")
