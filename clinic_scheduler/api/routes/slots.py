from datetime import date

from fastapi import APIRouter, Depends, Query

from clinic_scheduler.api.deps import (
    ensure_can_view,
    get_backend_client,
    get_current_user,
    load_psychologist,
)
from clinic_scheduler.api.schemas.appointment import (
    AvailableSlotsResponse,
    EndTimesResponse,
    GeneratedSlotsResponse,
)
from clinic_scheduler.core.config import settings
from clinic_scheduler.models.user import SessionUser
from clinic_scheduler.services.availability_service import get_available_times, get_end_times
from clinic_scheduler.services.backend_client import ClinicBackendClient
from clinic_scheduler.services.slot_service import generate_slots, is_available

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/generate", response_model=GeneratedSlotsResponse)
async def generate(
    start: str = Query(..., description="Window start, HH:MM"),
    end: str = Query(..., description="Window end, HH:MM"),
    duration: int | None = Query(None, description="Appointment length in minutes"),
    step: int | None = Query(None, description="Grid between candidate starts in minutes"),
) -> GeneratedSlotsResponse:
    """Candidate slots for a bare working window; no backend data involved."""
    if duration is None:
        duration = settings.default_duration_minutes
    if step is None:
        step = settings.slot_step_minutes
    return GeneratedSlotsResponse(
        window_start=start,
        window_end=end,
        duration_minutes=duration,
        step_minutes=step,
        slots=generate_slots(start, end, duration, step),
    )


@router.get("/available", response_model=AvailableSlotsResponse)
async def available_slots(
    psychologist_id: str = Query(...),
    date_param: date = Query(..., alias="date"),
    duration: int | None = Query(None),
    exclude_appointment_id: str | None = Query(None),
    client: ClinicBackendClient = Depends(get_backend_client),
    current_user: SessionUser = Depends(get_current_user),
) -> AvailableSlotsResponse:
    """Free start times for a psychologist on a date. Pass exclude_appointment_id when rescheduling."""
    ensure_can_view(current_user, psychologist_id)
    provider = await load_psychologist(client, psychologist_id)
    if duration is None:
        duration = settings.default_duration_minutes
    works = is_available(date_param, provider)
    slots = await get_available_times(
        client, provider, date_param, duration, exclude_appointment_id
    )
    return AvailableSlotsResponse(
        psychologist_id=psychologist_id,
        date=date_param.isoformat(),
        duration_minutes=duration,
        works_that_day=works,
        slots=slots,
    )


@router.get("/end-times", response_model=EndTimesResponse)
async def end_times(
    psychologist_id: str = Query(...),
    date_param: date = Query(..., alias="date"),
    start: str = Query(...),
    client: ClinicBackendClient = Depends(get_backend_client),
    current_user: SessionUser = Depends(get_current_user),
) -> EndTimesResponse:
    ensure_can_view(current_user, psychologist_id)
    provider = await load_psychologist(client, psychologist_id)
    return EndTimesResponse(
        psychologist_id=psychologist_id,
        date=date_param.isoformat(),
        start_time=start,
        end_times=get_end_times(provider, date_param, start),
    )
