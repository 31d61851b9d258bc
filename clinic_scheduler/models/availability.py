from sqlmodel import Field, SQLModel

from clinic_scheduler.models.working_hours import AppointmentType


class ProviderSlot(SQLModel):
    psychologist_id: str
    psychologist_name: str
    start_time: str
    end_time: str
    is_available: bool
    appointment_count: int = 0
    appointment_type: AppointmentType = AppointmentType.PRESENTIAL


class DayAvailability(SQLModel):
    date: str
    day_of_week: int
    total_slots: int = 0
    available_slots: int = 0
    occupied_slots: int = 0
    slots: list[ProviderSlot] = Field(default_factory=list)


class WeeklyAvailability(SQLModel):
    week_start: str
    days: list[DayAvailability] = Field(default_factory=list)
    total_slots: int = 0
    available_slots: int = 0
    occupied_slots: int = 0
    availability_rate: float = 0.0  # percent
    total_psychologists: int = 0
