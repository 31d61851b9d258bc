from datetime import date

from fastapi import APIRouter, Depends, Query

from clinic_scheduler.api.deps import (
    ensure_can_view,
    get_backend_client,
    get_current_user,
    get_today,
    load_psychologist,
)
from clinic_scheduler.api.schemas.appointment import FullyBookedResponse, WorkingDaysResponse
from clinic_scheduler.core.config import settings
from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.models.user import SessionUser
from clinic_scheduler.services.appointment_service import appointments_for_user, appointments_on
from clinic_scheduler.services.availability_service import get_fully_booked_dates
from clinic_scheduler.services.backend_client import ClinicBackendClient
from clinic_scheduler.services.slot_service import working_days

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/fully-booked", response_model=FullyBookedResponse)
async def fully_booked(
    horizon_days: int | None = Query(None, ge=1, le=366),
    duration: int | None = Query(None),
    today: date = Depends(get_today),
    client: ClinicBackendClient = Depends(get_backend_client),
    current_user: SessionUser = Depends(get_current_user),
) -> FullyBookedResponse:
    """Dates where every working psychologist has no slot left. Used only to shade calendar cells."""
    if horizon_days is None:
        horizon_days = settings.fully_booked_horizon_days
    if duration is None:
        duration = settings.default_duration_minutes
    dates = await get_fully_booked_dates(client, today, horizon_days, duration)
    return FullyBookedResponse(
        start_date=today.isoformat(),
        horizon_days=horizon_days,
        duration_minutes=duration,
        dates=dates,
    )


@router.get("/working-days", response_model=WorkingDaysResponse)
async def psychologist_working_days(
    psychologist_id: str = Query(...),
    start: date | None = Query(None),
    days: int = Query(60, ge=1, le=366),
    today: date = Depends(get_today),
    client: ClinicBackendClient = Depends(get_backend_client),
    current_user: SessionUser = Depends(get_current_user),
) -> WorkingDaysResponse:
    """Dates the date picker should leave enabled for a psychologist."""
    ensure_can_view(current_user, psychologist_id)
    provider = await load_psychologist(client, psychologist_id)
    first = start or today
    return WorkingDaysResponse(
        psychologist_id=psychologist_id,
        start_date=first.isoformat(),
        days=days,
        dates=working_days(provider, first, days),
    )


@router.get("/appointments", response_model=list[Appointment])
async def appointments_for_date(
    date_param: date = Query(..., alias="date"),
    client: ClinicBackendClient = Depends(get_backend_client),
    current_user: SessionUser = Depends(get_current_user),
) -> list[Appointment]:
    """Appointments on one calendar day, limited to the caller's own for psychologists."""
    appointments = await client.list_appointments()
    return appointments_on(appointments_for_user(appointments, current_user), date_param)
