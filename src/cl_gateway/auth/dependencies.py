"""FastAPI dependencies: get_current_user / require_admin.

Usage in any protected router:
    from src.cl_gateway.auth.dependencies import CurrentUser, get_current_user

    @router.get("/protected")
    async def protected(user: CurrentUser = Depends(get_current_user)):
        ...
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.cl_common.enums import AccountRole
from src.cl_common.errors import InvalidCredentialsError, PermissionDeniedError
from src.cl_gateway.auth.jwt_handler import decode_access_token

# tokenUrl points at the identity service login (used for the Swagger "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class CurrentUser:
    account_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN.value


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Extract and validate the JWT Bearer token. Raises HTTP 401 on any problem."""
    try:
        payload = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    try:
        account_id = int(payload.get("sub", ""))
    except ValueError:
        raise _CREDENTIALS_EXCEPTION from None
    return CurrentUser(account_id=account_id, role=str(payload.get("role", "")))


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Raises HTTP 403 (PermissionDeniedError) unless the caller is an administrator."""
    if not current_user.is_admin:
        raise PermissionDeniedError()
    return current_user
