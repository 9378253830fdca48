"""Reusable FastAPI dependencies for caller identity."""
from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError

from .auth import decode_token
from .models import RoleEnum
from .schemas import TokenData

oauth_scheme = OAuth2PasswordBearer(tokenUrl="/users/login")

STAFF_ROLES = frozenset({RoleEnum.ADMIN, RoleEnum.FACILITY_MANAGER})


def get_current_identity(token: str = Depends(oauth_scheme)) -> TokenData:
    payload = decode_token(token)
    username: str | None = payload.get("sub")
    if username is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing subject in token")
    try:
        return TokenData(username=username, user_id=payload.get("user_id"), role=payload.get("role", RoleEnum.REGULAR))
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Malformed token claims") from exc


def allow_roles(*roles: RoleEnum) -> Callable[[TokenData], TokenData]:
    def dependency(identity: TokenData = Depends(get_current_identity)) -> TokenData:
        if identity.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return identity

    return dependency


def ensure_owner_or_roles(identity: TokenData, owner_id: int, roles: frozenset[RoleEnum] = STAFF_ROLES) -> None:
    if identity.user_id != owner_id and identity.role not in roles:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
