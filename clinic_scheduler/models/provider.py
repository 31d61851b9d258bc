from sqlmodel import Field, SQLModel

from clinic_scheduler.models.working_hours import WorkingHours


class Provider(SQLModel):
    id: str
    name: str
    working_hours: list[WorkingHours] = Field(default_factory=list)
