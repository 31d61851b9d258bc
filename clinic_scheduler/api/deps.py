from collections.abc import AsyncGenerator
from datetime import date, datetime
from zoneinfo import ZoneInfo

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clinic_scheduler.core.config import settings
from clinic_scheduler.core.security import decode_access_token
from clinic_scheduler.models.provider import Provider
from clinic_scheduler.models.user import SessionUser, UserRole
from clinic_scheduler.services.backend_client import ClinicBackendClient

security = HTTPBearer(auto_error=False)


async def get_backend_client() -> AsyncGenerator[ClinicBackendClient, None]:
    client = ClinicBackendClient.from_settings()
    try:
        yield client
    finally:
        await client.aclose()


def get_today() -> date:
    """'Today' in the clinic's timezone. Overridden in tests to pin the calendar."""
    return datetime.now(ZoneInfo(settings.timezone)).date()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> SessionUser:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = decode_access_token(credentials.credentials)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_staff_user(current_user: SessionUser = Depends(get_current_user)) -> SessionUser:
    if not current_user.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins and receptionists can access this resource",
        )
    return current_user


def ensure_can_view(user: SessionUser, psychologist_id: str) -> None:
    """Psychologists may only look at their own schedule."""
    if user.role == UserRole.PSYCHOLOGIST and user.id != psychologist_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to view another psychologist's schedule",
        )


async def load_psychologist(client: ClinicBackendClient, psychologist_id: str) -> Provider:
    provider = await client.get_psychologist(psychologist_id)
    if not provider:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Psychologist not found",
        )
    return provider
