from datetime import date

from fastapi import APIRouter, Depends, Query

from clinic_scheduler.api.deps import get_backend_client, get_staff_user, get_today
from clinic_scheduler.models.availability import WeeklyAvailability
from clinic_scheduler.models.user import SessionUser
from clinic_scheduler.services.availability_service import get_weekly_availability
from clinic_scheduler.services.backend_client import ClinicBackendClient

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/weekly", response_model=WeeklyAvailability)
async def weekly(
    week_offset: int = Query(0, ge=-52, le=52, description="0 = current week"),
    only_available: bool = Query(False),
    today: date = Depends(get_today),
    client: ClinicBackendClient = Depends(get_backend_client),
    current_user: SessionUser = Depends(get_staff_user),
) -> WeeklyAvailability:
    """Hourly grid of free and taken slots for every psychologist, Monday to Saturday."""
    week = await get_weekly_availability(client, today, week_offset)
    if only_available:
        for day in week.days:
            day.slots = [s for s in day.slots if s.is_available]
    return week
