"""FastAPI dependencies for caller identity.

Usage in any protected router:
    from src.fs_gateway.auth.dependencies import Principal, get_current_user

    @router.get("/protected")
    async def protected(user: Principal = Depends(get_current_user)):
        ...
"""

import hmac
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from config.settings import settings
from src.fs_common.errors import (
    InvalidCredentialsError,
    OperatorRequiredError,
    SchedulerUnauthorizedError,
)
from src.fs_gateway.auth.jwt_handler import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)

OPERATOR_ROLE = "operator"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, built from verified token claims."""

    user_id: str
    email: str
    role: str

    @property
    def is_operator(self) -> bool:
        return self.role == OPERATOR_ROLE


async def get_current_user(token: str = Depends(oauth2_scheme)) -> Principal:
    """Extract and validate the JWT Bearer token.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        payload = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION
    return Principal(
        user_id=user_id,
        email=payload.get("email", ""),
        role=payload.get("role", "bidder"),
    )


async def require_operator(
    current_user: Principal = Depends(get_current_user),
) -> Principal:
    if not current_user.is_operator:
        raise OperatorRequiredError()
    return current_user


async def require_scheduler(authorization: str | None = Header(None)) -> None:
    """Guard for the cron-driven sweep endpoint.

    When CLEARING_SCHEDULER_TOKEN is unset the endpoint is open (local dev).
    """
    expected = settings.CLEARING_SCHEDULER_TOKEN
    if not expected:
        return
    if authorization is None or not hmac.compare_digest(authorization, f"Bearer {expected}"):
        raise SchedulerUnauthorizedError()
