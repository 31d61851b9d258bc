from enum import Enum

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from clinic_scheduler.core.clock import check_interval
from clinic_scheduler.models.working_hours import AppointmentType


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Only these statuses hold on to their time slot
ACTIVE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})


class Appointment(SQLModel):
    id: str
    psychologist_id: str
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    status: AppointmentStatus = AppointmentStatus.PENDING
    patient_id: str | None = None
    patient_name: str | None = None
    psychologist_name: str | None = None
    room_id: str | None = None
    appointment_type: AppointmentType = AppointmentType.PRESENTIAL

    @model_validator(mode="after")
    def _interval_is_chronological(self) -> "Appointment":
        check_interval(self.start_time, self.end_time)
        return self

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class AppointmentCreate(SQLModel):
    """Payload sent to the backend's schedule-appointment webhook."""

    patient_id: str
    psychologist_id: str
    date: str
    start_time: str
    end_time: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    appointment_type: AppointmentType = AppointmentType.PRESENTIAL
    room_id: str | None = None
    value: float | None = None
    payment_method: str | None = None
    insurance_type: str | None = None


class BookingOutcome(SQLModel):
    date: str
    status: str  # "scheduled" | "conflict" | "unavailable" | "error"
    detail: str | None = None
    conflicting_ids: list[str] = Field(default_factory=list)


class DaySummary(SQLModel):
    date: str
    pending: list[Appointment] = Field(default_factory=list)
    confirmed: list[Appointment] = Field(default_factory=list)


class DailySummary(SQLModel):
    today: DaySummary
    next_business_day: DaySummary
