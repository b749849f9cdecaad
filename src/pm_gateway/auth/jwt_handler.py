"""JWT access-token verification.

Tokens are issued by the auth service that owns user accounts; this service
only verifies them and reads the numeric user id from the "sub" claim.
create_access_token exists for local tooling and tests.

HS256 (symmetric HMAC): every service shares one JWT_SECRET.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.pm_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(user_id: int, expires_in: timedelta | None = None) -> str:
    """Issue an access token for user_id (default lifetime: JWT_EXPIRE_MINUTES)."""
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "type": "access",
        "iat": now,
        "exp": now + (expires_in if expires_in is not None else _ACCESS_EXPIRE),
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_user_id(token: str) -> int:
    """Validate an access token and return its numeric subject.

    Raises:
        InvalidCredentialsError: bad signature, expired, wrong token type,
            or a subject that is not a numeric user id.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.isdigit():
        raise InvalidCredentialsError()
    return int(sub)
