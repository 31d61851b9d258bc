import logging

from fastapi import APIRouter, Depends, HTTPException, status

from clinic_scheduler.api.deps import get_backend_client, get_current_user
from clinic_scheduler.api.schemas.auth import AccessToken, LoginRequest
from clinic_scheduler.core.config import settings
from clinic_scheduler.core.security import create_access_token
from clinic_scheduler.models.user import SessionUser
from clinic_scheduler.services.backend_client import ClinicBackendClient

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=AccessToken)
async def login(
    body: LoginRequest,
    client: ClinicBackendClient = Depends(get_backend_client),
) -> AccessToken:
    """Check credentials against the clinic backend and issue an access token carrying the role."""
    user = await client.authenticate(body.email, body.password)
    if not user:
        logger.info("Login rejected for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return AccessToken(
        access_token=create_access_token(user),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=SessionUser)
async def me(current_user: SessionUser = Depends(get_current_user)) -> SessionUser:
    return current_user
