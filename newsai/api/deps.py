from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.errors import PermissionDeniedError, TokenError
from ..models.schemas import TokenUser
from ..services.auth_service import auth_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenUser:
    """Resolve the caller from the ``Authorization: Bearer`` header."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Access token is required")
    try:
        return auth_service.verify_token(credentials.credentials)
    except TokenError as e:
        raise HTTPException(status_code=403, detail=str(e))


def require_roles(*roles: str):
    """Dependency factory allowing only callers whose role is in ``roles``."""

    async def checker(user: TokenUser = Depends(get_current_user)) -> TokenUser:
        if user.role not in roles:
            raise PermissionDeniedError()
        return user

    return checker
