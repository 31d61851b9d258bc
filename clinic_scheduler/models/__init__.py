from clinic_scheduler.models.appointment import (
    ACTIVE_STATUSES,
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    BookingOutcome,
)
from clinic_scheduler.models.provider import Provider
from clinic_scheduler.models.slot import Slot
from clinic_scheduler.models.user import SessionUser, UserRole
from clinic_scheduler.models.working_hours import AppointmentType, WorkingHours

__all__ = [
    "ACTIVE_STATUSES",
    "Appointment",
    "AppointmentCreate",
    "AppointmentStatus",
    "AppointmentType",
    "BookingOutcome",
    "Provider",
    "SessionUser",
    "Slot",
    "UserRole",
    "WorkingHours",
]
