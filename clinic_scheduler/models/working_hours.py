from enum import Enum

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from clinic_scheduler.core.clock import check_interval


class AppointmentType(str, Enum):
    PRESENTIAL = "presential"
    ONLINE = "online"


class WorkingHours(SQLModel):
    """One contiguous working window for a provider on one weekday (0 = Sunday)."""

    day_of_week: int = Field(ge=0, le=6)
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    appointment_type: AppointmentType = AppointmentType.PRESENTIAL

    @model_validator(mode="after")
    def _window_is_chronological(self) -> "WorkingHours":
        check_interval(self.start_time, self.end_time)
        return self
