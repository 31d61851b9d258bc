from enum import Enum

from sqlmodel import SQLModel


class UserRole(str, Enum):
    ADMIN = "admin"
    RECEPTIONIST = "receptionist"
    PSYCHOLOGIST = "psychologist"


class SessionUser(SQLModel):
    id: str
    name: str | None = None
    email: str | None = None
    role: UserRole

    @property
    def is_staff(self) -> bool:
        """Admins and receptionists book for anyone; psychologists only see their own agenda."""
        return self.role in (UserRole.ADMIN, UserRole.RECEPTIONIST)
