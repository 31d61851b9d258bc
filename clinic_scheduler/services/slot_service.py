"""Slot generation, conflict detection and calendar aggregation.

Everything here is pure and synchronous: callers fetch providers and
appointments first and pass them in, so every result is a function of its
arguments (plus an explicit ``today`` where a date range is anchored).
Times are ``HH:MM`` strings and dates ``YYYY-MM-DD`` strings, matching what
the front end sends and displays.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from clinic_scheduler.core.clock import MINUTES_PER_DAY, minutes_to_time, time_to_minutes
from clinic_scheduler.core.errors import InvalidArgument
from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.models.availability import DayAvailability, ProviderSlot, WeeklyAvailability
from clinic_scheduler.models.provider import Provider
from clinic_scheduler.models.slot import Slot
from clinic_scheduler.models.working_hours import WorkingHours

DEFAULT_STEP_MINUTES = 30
DEFAULT_DURATION_MINUTES = 60
DEFAULT_HORIZON_DAYS = 60


def day_of_week(day: date) -> int:
    """Weekday with Sunday = 0, the numbering used by stored working hours."""
    return (day.weekday() + 1) % 7


def _as_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"Malformed date {value!r}, expected YYYY-MM-DD") from e


def _date_key(value: date | str) -> str:
    return _as_date(value).isoformat()


def _window(start_time: str, end_time: str) -> tuple[int, int]:
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    if start > end:
        raise InvalidArgument(f"Window {start_time}-{end_time} ends before it starts")
    return start, end


def _check_positive(name: str, value: int) -> None:
    if value <= 0:
        raise InvalidArgument(f"{name} must be positive, got {value}")


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval overlap: [a_start, a_end) and [b_start, b_end)."""
    return b_start < a_end and b_end > a_start


# --- slot generation -------------------------------------------------------


def _slot_starts(start: int, end: int, duration_minutes: int, step_minutes: int) -> list[int]:
    starts = []
    current = start
    while current + duration_minutes <= end:
        starts.append(current)
        current += step_minutes
    return starts


def generate_slots(
    window_start: str,
    window_end: str,
    duration_minutes: int,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> list[Slot]:
    """
    Candidate slots inside one working window, ascending by start.

    Starts are laid on a ``step_minutes`` grid anchored at ``window_start``,
    independent of the duration, so consecutive slots may overlap. A start
    is kept only when the whole slot fits before ``window_end``.
    """
    _check_positive("duration_minutes", duration_minutes)
    _check_positive("step_minutes", step_minutes)
    start, end = _window(window_start, window_end)
    return [
        Slot(start_time=minutes_to_time(s), end_time=minutes_to_time(s + duration_minutes))
        for s in _slot_starts(start, end, duration_minutes, step_minutes)
    ]


def count_slots(
    window_start: str,
    window_end: str,
    duration_minutes: int,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> int:
    _check_positive("duration_minutes", duration_minutes)
    _check_positive("step_minutes", step_minutes)
    start, end = _window(window_start, window_end)
    return len(_slot_starts(start, end, duration_minutes, step_minutes))


# --- occupancy -------------------------------------------------------------


def _blocking_appointments(
    provider_id: str,
    day: date | str,
    existing_appointments: Iterable[Appointment],
    exclude_appointment_id: str | None = None,
) -> list[Appointment]:
    key = _date_key(day)
    return [
        a
        for a in existing_appointments
        if a.psychologist_id == provider_id
        and a.date == key
        and a.is_active
        and (exclude_appointment_id is None or a.id != exclude_appointment_id)
    ]


def find_conflicts(
    provider_id: str,
    day: date | str,
    candidate_start: str,
    candidate_end: str,
    existing_appointments: Iterable[Appointment],
    exclude_appointment_id: str | None = None,
) -> list[Appointment]:
    """Active appointments of the provider on that date overlapping the candidate interval."""
    start = time_to_minutes(candidate_start)
    end = time_to_minutes(candidate_end)
    if start >= end:
        raise InvalidArgument(f"Interval {candidate_start}-{candidate_end} is not chronological")
    conflicts = []
    for a in _blocking_appointments(provider_id, day, existing_appointments, exclude_appointment_id):
        if overlaps(time_to_minutes(a.start_time), time_to_minutes(a.end_time), start, end):
            conflicts.append(a)
    return conflicts


def is_occupied(
    provider_id: str,
    day: date | str,
    candidate_start: str,
    candidate_end: str,
    existing_appointments: Iterable[Appointment],
    exclude_appointment_id: str | None = None,
) -> bool:
    return bool(
        find_conflicts(
            provider_id,
            day,
            candidate_start,
            candidate_end,
            existing_appointments,
            exclude_appointment_id,
        )
    )


def working_hours_for(provider: Provider, day: date | str) -> list[WorkingHours]:
    weekday = day_of_week(_as_date(day))
    return [wh for wh in provider.working_hours or [] if wh.day_of_week == weekday]


def available_start_times(
    provider_id: str,
    day: date | str,
    working_hours: Sequence[WorkingHours] | None,
    existing_appointments: Iterable[Appointment],
    duration_minutes: int,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    exclude_appointment_id: str | None = None,
) -> list[str]:
    """
    Start times still free for a provider on a date.

    Every working-hours window matching the date's weekday contributes
    candidates; a candidate survives when its full duration stays inside
    its window and overlaps no active appointment. Returns ``[]`` when the
    provider does not work that weekday.
    """
    _check_positive("duration_minutes", duration_minutes)
    _check_positive("step_minutes", step_minutes)
    the_day = _as_date(day)
    weekday = day_of_week(the_day)
    windows = [wh for wh in working_hours or [] if wh.day_of_week == weekday]
    if not windows:
        return []

    booked = [
        (time_to_minutes(a.start_time), time_to_minutes(a.end_time))
        for a in _blocking_appointments(
            provider_id, the_day, existing_appointments, exclude_appointment_id
        )
    ]
    free: set[int] = set()
    for wh in windows:
        start, end = _window(wh.start_time, wh.end_time)
        for s in _slot_starts(start, end, duration_minutes, step_minutes):
            slot_end = s + duration_minutes
            if any(overlaps(b_start, b_end, s, slot_end) for b_start, b_end in booked):
                continue
            free.add(s)
    return [minutes_to_time(s) for s in sorted(free)]


def end_time_options(
    start_time: str,
    working_hours: Sequence[WorkingHours],
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> list[str]:
    """End times a booking form may offer once a start time is chosen.

    Every grid point after the start, up to the end of the window holding the start.
    """
    _check_positive("step_minutes", step_minutes)
    start = time_to_minutes(start_time)
    options: set[int] = set()
    for wh in working_hours:
        w_start, w_end = _window(wh.start_time, wh.end_time)
        if not (w_start <= start < w_end):
            continue
        current = start + step_minutes
        while current <= w_end:
            options.add(current)
            current += step_minutes
    return [minutes_to_time(m) for m in sorted(options) if m < MINUTES_PER_DAY]


# --- calendar --------------------------------------------------------------


def is_available(day: date | str, provider: Provider) -> bool:
    """True when the provider has a working-hours entry for the date's weekday."""
    weekday = day_of_week(_as_date(day))
    return any(wh.day_of_week == weekday for wh in provider.working_hours or [])


def fits_working_hours(provider: Provider, day: date | str, start_time: str, end_time: str) -> bool:
    """True when ``[start_time, end_time)`` lies entirely inside one of the provider's windows that day."""
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    for wh in working_hours_for(provider, day):
        w_start, w_end = _window(wh.start_time, wh.end_time)
        if w_start <= start and end <= w_end:
            return True
    return False


def working_days(provider: Provider, start: date | str, days: int) -> list[str]:
    first = _as_date(start)
    result = []
    for offset in range(days):
        current = first + timedelta(days=offset)
        if is_available(current, provider):
            result.append(current.isoformat())
    return result


def compute_fully_booked_dates(
    providers: Iterable[Provider],
    appointments: Iterable[Appointment],
    today: date,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> set[str]:
    """
    Dates in ``[today, today + horizon_days)`` with no capacity left.

    Capacity is a slot count per provider and date; bookings are an
    appointment count. One appointment is assumed to use one slot even when
    its real length differs from ``duration_minutes``; the result only
    decorates calendar cells. Providers without hours that weekday are left
    out of the decision entirely.
    """
    _check_positive("duration_minutes", duration_minutes)
    _check_positive("step_minutes", step_minutes)
    available: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    booked: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))

    for provider in providers:
        for offset in range(horizon_days):
            current = today + timedelta(days=offset)
            for wh in working_hours_for(provider, current):
                available[current.isoformat()][provider.id] += count_slots(
                    wh.start_time, wh.end_time, duration_minutes, step_minutes
                )

    for a in appointments:
        if a.is_active:
            booked[a.date][a.psychologist_id] += 1

    fully_booked = set()
    for key, per_provider in available.items():
        if not any(count > 0 for count in per_provider.values()):
            continue
        if all(booked[key][pid] >= count for pid, count in per_provider.items()):
            fully_booked.add(key)
    return fully_booked


# --- staff dashboard -------------------------------------------------------

DASHBOARD_SLOT_MINUTES = 60
DASHBOARD_DAYS = 6  # Monday to Saturday


def week_start_for(today: date, week_offset: int = 0) -> date:
    """Monday of the week containing ``today``, moved by ``week_offset`` weeks."""
    return today - timedelta(days=today.weekday()) + timedelta(weeks=week_offset)


def weekly_availability(
    providers: Sequence[Provider],
    appointments: Sequence[Appointment],
    week_start: date,
) -> WeeklyAvailability:
    """Hourly free/occupied grid for every provider, Monday to Saturday."""
    week = WeeklyAvailability(
        week_start=week_start.isoformat(),
        total_psychologists=len(providers),
    )
    for offset in range(DASHBOARD_DAYS):
        current = week_start + timedelta(days=offset)
        day = DayAvailability(date=current.isoformat(), day_of_week=day_of_week(current))
        for provider in providers:
            for wh in working_hours_for(provider, current):
                for slot in generate_slots(
                    wh.start_time, wh.end_time, DASHBOARD_SLOT_MINUTES, DASHBOARD_SLOT_MINUTES
                ):
                    count = len(
                        find_conflicts(
                            provider.id, current, slot.start_time, slot.end_time, appointments
                        )
                    )
                    day.slots.append(
                        ProviderSlot(
                            psychologist_id=provider.id,
                            psychologist_name=provider.name,
                            start_time=slot.start_time,
                            end_time=slot.end_time,
                            is_available=count == 0,
                            appointment_count=count,
                            appointment_type=wh.appointment_type,
                        )
                    )
        if not day.slots:
            continue
        day.total_slots = len(day.slots)
        day.available_slots = sum(1 for s in day.slots if s.is_available)
        day.occupied_slots = day.total_slots - day.available_slots
        week.days.append(day)

    week.total_slots = sum(d.total_slots for d in week.days)
    week.available_slots = sum(d.available_slots for d in week.days)
    week.occupied_slots = sum(d.occupied_slots for d in week.days)
    if week.total_slots:
        week.availability_rate = round(week.available_slots / week.total_slots * 100, 1)
    return week
