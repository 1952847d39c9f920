import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from sdg_portal.core.security import ROLES, decode_token

# No route serves tokenUrl; tokens come from create_access_token (see scripts/seed.py).
# The docs' "Authorize" dialog therefore only accepts a pasted bearer token.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=True)


@dataclass(frozen=True)
class Principal:
    """Caller identity resolved from the bearer token."""

    id: uuid.UUID
    role: str


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Validate JWT and return the caller as a Principal."""
    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise credentials_exc
        user_id: str | None = payload.get("sub")
        role: str | None = payload.get("role")
        if not user_id or role not in ROLES:
            raise credentials_exc
        return Principal(id=uuid.UUID(user_id), role=role)
    except (JWTError, ValueError):
        raise credentials_exc


def require_role(*roles: str):
    """Dependency factory; raises 403 unless the caller has one of ``roles``."""
    async def check(user: Principal = Depends(get_current_user)) -> Principal:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user.role}' is not permitted for this action.",
            )
        return user
    return check
