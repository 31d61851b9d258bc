from datetime import date

from pydantic import BaseModel, Field

from clinic_scheduler.models.appointment import Appointment, BookingOutcome
from clinic_scheduler.models.slot import Slot
from clinic_scheduler.models.working_hours import AppointmentType


class GeneratedSlotsResponse(BaseModel):
    window_start: str
    window_end: str
    duration_minutes: int
    step_minutes: int
    slots: list[Slot]


class AvailableSlotsResponse(BaseModel):
    psychologist_id: str
    date: str  # YYYY-MM-DD
    duration_minutes: int
    works_that_day: bool  # distinguishes "not a working day" from "fully taken"
    slots: list[Slot]


class EndTimesResponse(BaseModel):
    psychologist_id: str
    date: str
    start_time: str
    end_times: list[str]


class FullyBookedResponse(BaseModel):
    start_date: str
    horizon_days: int
    duration_minutes: int
    dates: list[str]


class WorkingDaysResponse(BaseModel):
    psychologist_id: str
    start_date: str
    days: int
    dates: list[str]


class ConflictCheckRequest(BaseModel):
    psychologist_id: str
    date: date
    start_time: str
    end_time: str
    exclude_appointment_id: str | None = None  # set when rescheduling


class ConflictCheckResponse(BaseModel):
    has_conflict: bool
    conflicts: list[Appointment]


class BookAppointmentRequest(BaseModel):
    patient_id: str
    psychologist_id: str
    dates: list[date] = Field(min_length=1)
    start_time: str
    end_time: str
    appointment_type: AppointmentType = AppointmentType.PRESENTIAL
    room_id: str | None = None
    value: float | None = None
    payment_method: str | None = None
    insurance_type: str | None = None


class BookAppointmentResponse(BaseModel):
    success_count: int
    conflict_count: int
    unavailable_count: int
    error_count: int
    outcomes: list[BookingOutcome]
