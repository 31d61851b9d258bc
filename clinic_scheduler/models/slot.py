from sqlmodel import SQLModel


class Slot(SQLModel):
    """Computed start/end pair inside a working window. Never persisted."""

    start_time: str
    end_time: str
