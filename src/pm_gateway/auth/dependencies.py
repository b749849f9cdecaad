"""FastAPI dependency: get_current_user_id.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import get_current_user_id

    @router.get("/protected")
    async def protected(user_id: int = Depends(get_current_user_id)):
        ...

Inputs past this point carry a trusted numeric user id; user accounts live
in the external auth service, so there is no user lookup here.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.pm_common.errors import InvalidCredentialsError
from src.pm_gateway.auth.jwt_handler import decode_user_id

# tokenUrl points Swagger UI at the auth service's login endpoint
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> int:
    """Extract and validate the JWT Bearer token, return the user id.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        return decode_user_id(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
