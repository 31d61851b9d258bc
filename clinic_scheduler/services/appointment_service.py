import logging
from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from clinic_scheduler.core.clock import check_interval
from clinic_scheduler.core.errors import BackendError
from clinic_scheduler.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    BookingOutcome,
    DailySummary,
    DaySummary,
)
from clinic_scheduler.models.provider import Provider
from clinic_scheduler.models.user import SessionUser, UserRole
from clinic_scheduler.services.backend_client import ClinicBackendClient
from clinic_scheduler.services.slot_service import find_conflicts, fits_working_hours, is_available

logger = logging.getLogger(__name__)


def next_business_day(today: date) -> date:
    """Tomorrow, except that Saturday skips Sunday and lands on Monday."""
    if today.weekday() == 5:
        return today + timedelta(days=2)
    return today + timedelta(days=1)


def appointments_for_user(
    appointments: Iterable[Appointment], user: SessionUser
) -> list[Appointment]:
    """Psychologists only see their own agenda; staff see everything."""
    if user.role == UserRole.PSYCHOLOGIST:
        return [a for a in appointments if a.psychologist_id == user.id]
    return list(appointments)


def appointments_on(appointments: Iterable[Appointment], day: date) -> list[Appointment]:
    key = day.isoformat()
    return sorted((a for a in appointments if a.date == key), key=lambda a: a.start_time)


def _day_summary(appointments: Sequence[Appointment], day: date) -> DaySummary:
    on_day = appointments_on(appointments, day)
    return DaySummary(
        date=day.isoformat(),
        pending=[a for a in on_day if a.status == AppointmentStatus.PENDING],
        confirmed=[a for a in on_day if a.status == AppointmentStatus.CONFIRMED],
    )


def daily_summary(
    appointments: Iterable[Appointment], today: date, user: SessionUser
) -> DailySummary:
    visible = appointments_for_user(appointments, user)
    return DailySummary(
        today=_day_summary(visible, today),
        next_business_day=_day_summary(visible, next_business_day(today)),
    )


def check_conflict(
    psychologist_id: str,
    day: date | str,
    start_time: str,
    end_time: str,
    appointments: Iterable[Appointment],
    exclude_appointment_id: str | None = None,
) -> list[Appointment]:
    """Appointments that would collide with the proposed booking (empty when it is free)."""
    check_interval(start_time, end_time)
    return find_conflicts(
        psychologist_id, day, start_time, end_time, appointments, exclude_appointment_id
    )


async def book_appointments(
    client: ClinicBackendClient,
    draft: AppointmentCreate,
    dates: Sequence[date],
    appointments: Sequence[Appointment],
    provider: Provider | None = None,
) -> list[BookingOutcome]:
    """
    Book the same slot on several dates.

    Each date is checked against the loaded appointments first and skipped on
    conflict. When the provider is known, dates it does not work and times
    outside its working windows are refused. Every booking is created as
    pending. A backend failure on one date is recorded and the remaining
    dates are still attempted. Two browser sessions can both pass
    this check; the backend has the final word.
    """
    check_interval(draft.start_time, draft.end_time)
    outcomes: list[BookingOutcome] = []
    for day in sorted(set(dates)):
        key = day.isoformat()
        if provider is not None and not is_available(day, provider):
            outcomes.append(
                BookingOutcome(date=key, status="unavailable", detail="Provider does not work this weekday")
            )
            continue
        if provider is not None and not fits_working_hours(
            provider, day, draft.start_time, draft.end_time
        ):
            outcomes.append(
                BookingOutcome(date=key, status="unavailable", detail="Outside the provider's working hours")
            )
            continue
        conflicts = find_conflicts(
            draft.psychologist_id, key, draft.start_time, draft.end_time, appointments
        )
        if conflicts:
            outcomes.append(
                BookingOutcome(
                    date=key,
                    status="conflict",
                    detail="Slot already taken",
                    conflicting_ids=[a.id for a in conflicts],
                )
            )
            continue
        data = draft.model_copy(update={"date": key, "status": AppointmentStatus.PENDING})
        try:
            await client.schedule_appointment(data)
        except BackendError as e:
            logger.warning("Scheduling %s for psychologist %s failed: %s", key, draft.psychologist_id, e)
            outcomes.append(BookingOutcome(date=key, status="error", detail=str(e)))
            continue
        logger.info(
            "Scheduled %s %s-%s for psychologist %s",
            key,
            draft.start_time,
            draft.end_time,
            draft.psychologist_id,
        )
        outcomes.append(BookingOutcome(date=key, status="scheduled"))
    return outcomes
