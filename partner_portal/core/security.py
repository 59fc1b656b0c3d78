"""
API security.

Sessions live in the external identity provider; this service only verifies
the bearer token it issues. The static API_SECRET_TOKEN is accepted as an
admin credential for internal tooling.
"""
import enum
from datetime import datetime, UTC, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel
from starlette import status

from partner_portal.core.config import settings

security = HTTPBearer()


class Role(str, enum.Enum):
    PARTNER = "partner"
    EMPLOYEE = "employee"
    ADMIN = "admin"


ROLE_HIERARCHY = {
    Role.PARTNER: 1,
    Role.EMPLOYEE: 2,
    Role.ADMIN: 3,
}


class Principal(BaseModel):
    """Authenticated caller extracted from the bearer token."""
    subject: str
    role: Role
    partner_id: Optional[int] = None
    email: Optional[str] = None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a token in the identity provider's format. Used by tests and scripts."""
    to_encode = data.copy()
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=60))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
) -> Principal:
    """Dependency to get the current caller from the bearer token."""
    token = credentials.credentials
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if settings.API_SECRET_TOKEN and token == settings.API_SECRET_TOKEN:
        return Principal(subject="static_admin", role=Role.ADMIN)

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            raise credentials_exception
        role = Role(payload.get("role", Role.PARTNER.value))
        partner_id = payload.get("partner_id")
        return Principal(
            subject=str(subject),
            role=role,
            partner_id=int(partner_id) if partner_id is not None else None,
            email=payload.get("email"),
        )
    except (JWTError, ValueError):
        raise credentials_exception


def require_role(min_role: Role):
    """
    Dependency factory to enforce minimum role requirements.
    """
    async def role_checker(current_user: Principal = Depends(get_current_user)) -> Principal:
        if ROLE_HIERARCHY.get(current_user.role, 0) < ROLE_HIERARCHY[min_role]:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Operation forbidden. Required role: {min_role.value}",
            )
        return current_user

    return role_checker


def verify_cron_secret(
    credentials: HTTPAuthorizationCredentials = Security(security),
) -> None:
    """Scheduled jobs authenticate with Bearer CRON_SECRET."""
    if not settings.CRON_SECRET or credentials.credentials != settings.CRON_SECRET:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
