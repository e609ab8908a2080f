"""User domain service: register, login, refresh, lookups.

All DB operations use the injected AsyncSession. Transactions are managed
by the caller (router layer) via `async with db.begin()`.
"""

import logging
import secrets
import uuid
from typing import Any

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidReferralCodeError,
    InvalidRefreshTokenError,
    UsernameExistsError,
    UserNotFoundError,
)
from src.cb_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.cb_gateway.auth.password import hash_password, verify_password
from src.cb_gateway.user.db_models import UserModel

logger = logging.getLogger("cb.gateway")

_CREATE_ACCOUNT_SQL = text(
    "INSERT INTO accounts (user_id, available_balance, frozen_balance, version) "
    "VALUES (:user_id, 0, 0, 0)"
)

_INVITATION_CODE_ATTEMPTS = 5


def generate_invitation_code() -> str:
    """8 chars, uppercase: 'CB' + 6 hex digits, e.g. 'CBA1B2C3'."""
    return f"CB{secrets.token_hex(3).upper()}"


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        name: str,
        user_type: str,
        db: AsyncSession,
        store_name: str | None = None,
        referral_code: str | None = None,
    ) -> UserModel:
        """Register a new user and auto-create their account row.

        Atomically inserts into `users` and `accounts` in a single transaction.
        The caller must wrap this in `async with db.begin()`.
        """
        result = await db.execute(
            select(UserModel).where(UserModel.username == username)
        )
        if result.scalar_one_or_none() is not None:
            raise UsernameExistsError()

        result = await db.execute(
            select(UserModel).where(UserModel.email == email)
        )
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        referrer_id = None
        if referral_code:
            referrer = await self.get_by_invitation_code(referral_code, db)
            referrer_id = referrer.id

        user = await self._insert_user(
            db,
            username=username,
            email=email,
            name=name,
            password_hash=hash_password(password),
            user_type=user_type,
            store_name=store_name,
            referred_by=referrer_id,
            is_active=True,
        )

        await db.execute(_CREATE_ACCOUNT_SQL, {"user_id": str(user.id)})

        logger.info(
            "Registered %s user %s (referred_by=%s)", user_type, user.id, referrer_id
        )
        return user

    async def _insert_user(self, db: AsyncSession, **fields: Any) -> UserModel:
        """Insert a user row with a fresh invitation code, retrying on collision.

        Each attempt runs in a savepoint so a unique violation does not abort
        the caller's transaction. Username and email races that slip past
        the pre-checks surface as the usual 409 errors.
        """
        attempt = 1
        while True:
            user = UserModel(invitation_code=generate_invitation_code(), **fields)
            try:
                async with db.begin_nested():
                    db.add(user)
                    await db.flush()  # Get user.id without committing
            except IntegrityError as exc:
                constraint = str(exc.orig)
                if "uq_users_username" in constraint:
                    raise UsernameExistsError() from None
                if "uq_users_email" in constraint:
                    raise EmailExistsError() from None
                if (
                    "uq_users_invitation_code" not in constraint
                    or attempt >= _INVITATION_CODE_ATTEMPTS
                ):
                    raise
                logger.warning("Invitation code collision, retrying (attempt %d)", attempt)
                attempt += 1
                continue
            return user

    async def login(
        self,
        username: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate and return (user, access_token, refresh_token).

        "User not found" and "wrong password" both raise InvalidCredentialsError.
        """
        result = await db.execute(
            select(UserModel).where(UserModel.username == username)
        )
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(str(user.id), role=user.user_type),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str, db: AsyncSession) -> str:
        """Validate refresh token and return a new access token.

        The user row is re-read: a disabled account cannot mint new access
        tokens, and the role claim reflects the current user type.
        """
        payload = decode_token(refresh_token, expected_type="refresh")
        try:
            user = await self.get_user(str(payload.get("sub")), db)
        except UserNotFoundError:
            raise InvalidRefreshTokenError() from None
        if not user.is_active:
            raise AccountDisabledError()
        return create_access_token(str(user.id), role=user.user_type)

    async def get_user(self, user_id: str, db: AsyncSession) -> UserModel:
        try:
            uid = uuid.UUID(str(user_id))
        except ValueError:
            raise UserNotFoundError(user_id) from None
        result = await db.execute(select(UserModel).where(UserModel.id == uid))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def get_by_invitation_code(self, code: str, db: AsyncSession) -> UserModel:
        """Active user owning an invitation code; codes match case-insensitively."""
        result = await db.execute(
            select(UserModel).where(UserModel.invitation_code == code.strip().upper())
        )
        user = result.scalar_one_or_none()
        if user is None or not user.is_active:
            raise InvalidReferralCodeError(code)
        return user
