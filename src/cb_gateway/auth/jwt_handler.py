"""JWT token creation and verification.

HS256 with a shared JWT_SECRET. Access tokens carry the user type in a
"role" claim for logging only; role checks always re-read the user row
(see dependencies.require_user_type) so a demoted user loses access
immediately.

No token revocation: once issued, tokens are valid until expiry.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.cb_common.errors import InvalidCredentialsError, InvalidRefreshTokenError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)


def _encode(user_id: str, token_type: str, ttl: timedelta, role: str | None) -> str:
    now = datetime.now(UTC)
    payload: dict[str, object] = {
        "sub": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + ttl,
    }
    if role is not None:
        payload["role"] = role
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(user_id: str, role: str | None = None) -> str:
    """Issue a short-lived access token (default: 30 min)."""
    return _encode(user_id, "access", _ACCESS_EXPIRE, role)


def create_refresh_token(user_id: str) -> str:
    """Issue a long-lived refresh token (default: 7 days). Not rotated on use."""
    return _encode(user_id, "refresh", _REFRESH_EXPIRE, None)


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Decode and validate a JWT token.

    Args:
        token: Raw JWT string.
        expected_type: "access" or "refresh". Strictly enforced so a refresh
                       token can never be used as an access token.

    Raises:
        InvalidCredentialsError: Token invalid/expired and expected_type="access".
        InvalidRefreshTokenError: Token invalid/expired and expected_type="refresh".
    """
    payload: dict[str, str] = {}
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],
        )
    except JWTError:
        _raise_auth_error(expected_type)

    if payload.get("type") != expected_type:
        _raise_auth_error(expected_type)

    return payload


def _raise_auth_error(expected_type: str) -> None:
    if expected_type == "access":
        raise InvalidCredentialsError()
    raise InvalidRefreshTokenError()
