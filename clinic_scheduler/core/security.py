from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from pydantic import ValidationError

from clinic_scheduler.core.config import settings
from clinic_scheduler.models.user import SessionUser


def create_access_token(user: SessionUser) -> str:
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {
        "sub": user.id,
        "role": user.role.value,
        "name": user.name,
        "email": user.email,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> SessionUser | None:
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.algorithm]
        )
    except JWTError:
        return None
    if payload.get("type") != "access" or not payload.get("sub"):
        return None
    try:
        return SessionUser(
            id=str(payload["sub"]),
            name=payload.get("name"),
            email=payload.get("email"),
            role=payload.get("role"),
        )
    except ValidationError:
        return None
