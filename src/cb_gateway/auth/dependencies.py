"""FastAPI dependencies: get_current_user and role guards.

Usage in any protected router:

    @router.post("/sales")
    async def record_sale(user: UserModel = Depends(require_merchant)):
        ...
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.database import get_db_session
from src.cb_common.enums import UserType
from src.cb_common.errors import AccountDisabledError, ForbiddenRoleError, InvalidCredentialsError
from src.cb_gateway.auth.jwt_handler import decode_token
from src.cb_gateway.user.db_models import UserModel

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Extract and validate the JWT Bearer token, return the UserModel.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    Raises AccountDisabledError (403) if the user account is disabled.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    if not user.is_active:
        raise AccountDisabledError()

    return user


def require_user_type(*allowed: UserType) -> Callable[..., Awaitable[UserModel]]:
    """Build a dependency that admits only the given user types."""
    allowed_values = {t.value for t in allowed}

    async def _guard(current_user: UserModel = Depends(get_current_user)) -> UserModel:
        if current_user.user_type not in allowed_values:
            raise ForbiddenRoleError(" or ".join(sorted(allowed_values)))
        return current_user

    return _guard


require_merchant = require_user_type(UserType.MERCHANT)
require_client = require_user_type(UserType.CLIENT)
require_admin = require_user_type(UserType.ADMIN)
