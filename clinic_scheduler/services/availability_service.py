from datetime import date

from clinic_scheduler.core.config import settings
from clinic_scheduler.models.availability import WeeklyAvailability
from clinic_scheduler.models.provider import Provider
from clinic_scheduler.models.slot import Slot
from clinic_scheduler.services.backend_client import ClinicBackendClient
from clinic_scheduler.services.slot_service import (
    available_start_times,
    compute_fully_booked_dates,
    end_time_options,
    minutes_to_time,
    time_to_minutes,
    week_start_for,
    weekly_availability,
    working_hours_for,
)


async def get_available_times(
    client: ClinicBackendClient,
    provider: Provider,
    day: date,
    duration_minutes: int,
    exclude_appointment_id: str | None = None,
) -> list[Slot]:
    """Free slots for one provider on one date, built from freshly fetched appointments."""
    appointments = await client.list_appointments()
    starts = available_start_times(
        provider.id,
        day,
        provider.working_hours,
        appointments,
        duration_minutes,
        settings.slot_step_minutes,
        exclude_appointment_id=exclude_appointment_id,
    )
    return [_slot_from(start, duration_minutes) for start in starts]


def _slot_from(start: str, duration_minutes: int) -> Slot:
    return Slot(
        start_time=start,
        end_time=minutes_to_time(time_to_minutes(start) + duration_minutes),
    )


def get_end_times(provider: Provider, day: date, start_time: str) -> list[str]:
    return end_time_options(
        start_time, working_hours_for(provider, day), settings.slot_step_minutes
    )


async def get_fully_booked_dates(
    client: ClinicBackendClient,
    today: date,
    horizon_days: int | None = None,
    duration_minutes: int | None = None,
) -> list[str]:
    providers = await client.list_psychologists()
    appointments = await client.list_appointments()
    dates = compute_fully_booked_dates(
        providers,
        appointments,
        today,
        horizon_days=settings.fully_booked_horizon_days if horizon_days is None else horizon_days,
        duration_minutes=(
            settings.default_duration_minutes if duration_minutes is None else duration_minutes
        ),
        step_minutes=settings.slot_step_minutes,
    )
    return sorted(dates)


async def get_weekly_availability(
    client: ClinicBackendClient, today: date, week_offset: int = 0
) -> WeeklyAvailability:
    providers = await client.list_psychologists()
    appointments = await client.list_appointments()
    return weekly_availability(providers, appointments, week_start_for(today, week_offset))
