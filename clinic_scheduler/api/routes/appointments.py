import logging
from collections import Counter
from datetime import date

from fastapi import APIRouter, Depends

from clinic_scheduler.api.deps import (
    ensure_can_view,
    get_backend_client,
    get_current_user,
    get_staff_user,
    get_today,
    load_psychologist,
)
from clinic_scheduler.api.schemas.appointment import (
    BookAppointmentRequest,
    BookAppointmentResponse,
    ConflictCheckRequest,
    ConflictCheckResponse,
)
from clinic_scheduler.models.appointment import AppointmentCreate, AppointmentStatus, DailySummary
from clinic_scheduler.models.user import SessionUser
from clinic_scheduler.services.appointment_service import (
    book_appointments,
    check_conflict,
    daily_summary,
)
from clinic_scheduler.services.backend_client import ClinicBackendClient

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("/conflicts", response_model=ConflictCheckResponse)
async def check_appointment_conflicts(
    body: ConflictCheckRequest,
    client: ClinicBackendClient = Depends(get_backend_client),
    current_user: SessionUser = Depends(get_current_user),
) -> ConflictCheckResponse:
    """Would this booking double-book the psychologist? Checked before the form is submitted."""
    ensure_can_view(current_user, body.psychologist_id)
    appointments = await client.list_appointments()
    conflicts = check_conflict(
        body.psychologist_id,
        body.date,
        body.start_time,
        body.end_time,
        appointments,
        exclude_appointment_id=body.exclude_appointment_id,
    )
    return ConflictCheckResponse(has_conflict=bool(conflicts), conflicts=conflicts)


@router.post("", response_model=BookAppointmentResponse)
async def book(
    body: BookAppointmentRequest,
    client: ClinicBackendClient = Depends(get_backend_client),
    current_user: SessionUser = Depends(get_staff_user),
) -> BookAppointmentResponse:
    provider = await load_psychologist(client, body.psychologist_id)
    appointments = await client.list_appointments()
    draft = AppointmentCreate(
        patient_id=body.patient_id,
        psychologist_id=body.psychologist_id,
        date=body.dates[0].isoformat(),
        start_time=body.start_time,
        end_time=body.end_time,
        status=AppointmentStatus.PENDING,
        appointment_type=body.appointment_type,
        room_id=body.room_id,
        value=body.value,
        payment_method=body.payment_method,
        insurance_type=body.insurance_type,
    )
    outcomes = await book_appointments(client, draft, body.dates, appointments, provider)
    counts = Counter(o.status for o in outcomes)
    logger.info(
        "Booking by user %s for psychologist %s: %s",
        current_user.id,
        body.psychologist_id,
        dict(counts),
    )
    return BookAppointmentResponse(
        success_count=counts["scheduled"],
        conflict_count=counts["conflict"],
        unavailable_count=counts["unavailable"],
        error_count=counts["error"],
        outcomes=outcomes,
    )


@router.get("/summary", response_model=DailySummary)
async def summary(
    today: date = Depends(get_today),
    client: ClinicBackendClient = Depends(get_backend_client),
    current_user: SessionUser = Depends(get_current_user),
) -> DailySummary:
    """Pending and confirmed appointments for today and the next business day."""
    appointments = await client.list_appointments()
    return daily_summary(appointments, today, current_user)
