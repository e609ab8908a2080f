"""Unit tests for user service (mocked DB)."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from src.cb_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidReferralCodeError,
    InvalidRefreshTokenError,
    UsernameExistsError,
    UserNotFoundError,
)
from src.cb_gateway.auth.jwt_handler import create_refresh_token, decode_token
from src.cb_gateway.user.db_models import UserModel
from src.cb_gateway.user.service import UserService, generate_invitation_code


def _make_user(is_active: bool = True, user_type: str = "client") -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.username = "alice"
    user.email = "alice@example.com"
    user.name = "Alice"
    user.password_hash = "$2b$12$fakehash"
    user.user_type = user_type
    user.invitation_code = "CBAAAAAA"
    user.referred_by = None
    user.is_active = is_active
    return user


def _result(value: object) -> MagicMock:
    res = MagicMock()
    res.scalar_one_or_none.return_value = value
    return res


@pytest.fixture
def mock_db() -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    db.begin_nested = MagicMock()
    return db


def _unique_violation(constraint: str) -> IntegrityError:
    return IntegrityError(
        "INSERT INTO users ...",
        {},
        Exception(f'duplicate key value violates unique constraint "{constraint}"'),
    )


@pytest.fixture
def service() -> UserService:
    return UserService()


class TestInvitationCode:
    def test_format(self) -> None:
        code = generate_invitation_code()
        assert code.startswith("CB")
        assert len(code) == 8
        assert code == code.upper()


class TestRegister:
    async def test_duplicate_username_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))

        with pytest.raises(UsernameExistsError):
            await service.register(
                "alice", "new@email.com", "Pass1word", "Alice", "client", mock_db
            )

    async def test_duplicate_email_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(side_effect=[_result(None), _result(_make_user())])

        with pytest.raises(EmailExistsError):
            await service.register(
                "newuser", "alice@example.com", "Pass1word", "New", "client", mock_db
            )

    async def test_unknown_referral_code_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(
            side_effect=[_result(None), _result(None), _result(None)]
        )

        with pytest.raises(InvalidReferralCodeError):
            await service.register(
                "newuser", "new@example.com", "Pass1word", "New", "client", mock_db,
                referral_code="CBZZZZZZ",
            )

    async def test_disabled_referrer_code_is_rejected(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(
            side_effect=[_result(None), _result(None), _result(_make_user(is_active=False))]
        )

        with pytest.raises(InvalidReferralCodeError):
            await service.register(
                "newuser", "new@example.com", "Pass1word", "New", "client", mock_db,
                referral_code="CBAAAAAA",
            )
        mock_db.add.assert_not_called()

    async def test_referral_links_referrer_and_creates_account(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        referrer = _make_user()
        mock_db.execute = AsyncMock(
            side_effect=[_result(None), _result(None), _result(referrer), MagicMock()]
        )

        async def _assign_id() -> None:
            mock_db.add.call_args.args[0].id = uuid.uuid4()

        mock_db.flush = AsyncMock(side_effect=_assign_id)

        with patch("src.cb_gateway.user.service.hash_password", return_value="hashed"):
            user = await service.register(
                "newuser", "new@example.com", "Pass1word", "New", "client", mock_db,
                referral_code="cbaaaaaa",
            )

        assert user.referred_by == referrer.id
        assert user.password_hash == "hashed"
        assert user.invitation_code.startswith("CB")
        # users lookup x3, then the accounts insert
        assert mock_db.execute.await_count == 4

    async def test_invitation_code_collision_retries_with_new_code(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(side_effect=[_result(None), _result(None), MagicMock()])
        flushes = [_unique_violation("uq_users_invitation_code"), None]

        async def _flush() -> None:
            outcome = flushes.pop(0)
            if outcome is not None:
                raise outcome
            mock_db.add.call_args.args[0].id = uuid.uuid4()

        mock_db.flush = AsyncMock(side_effect=_flush)

        with (
            patch("src.cb_gateway.user.service.hash_password", return_value="hashed"),
            patch(
                "src.cb_gateway.user.service.generate_invitation_code",
                side_effect=["CBAAAAAA", "CBBBBBBB"],
            ),
        ):
            user = await service.register(
                "newuser", "new@example.com", "Pass1word", "New", "client", mock_db
            )

        assert user.invitation_code == "CBBBBBBB"
        assert mock_db.add.call_count == 2
        assert mock_db.begin_nested.call_count == 2

    async def test_invitation_code_collisions_give_up(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(side_effect=[_result(None), _result(None)])
        mock_db.flush = AsyncMock(side_effect=_unique_violation("uq_users_invitation_code"))

        with (
            patch("src.cb_gateway.user.service.hash_password", return_value="hashed"),
            pytest.raises(IntegrityError),
        ):
            await service.register(
                "newuser", "new@example.com", "Pass1word", "New", "client", mock_db
            )
        assert mock_db.add.call_count == 5

    @pytest.mark.parametrize(
        ("constraint", "error"),
        [("uq_users_username", UsernameExistsError), ("uq_users_email", EmailExistsError)],
    )
    async def test_concurrent_duplicate_maps_to_conflict(
        self, service: UserService, mock_db: AsyncMock,
        constraint: str, error: type[Exception],
    ) -> None:
        mock_db.execute = AsyncMock(side_effect=[_result(None), _result(None)])
        mock_db.flush = AsyncMock(side_effect=_unique_violation(constraint))

        with (
            patch("src.cb_gateway.user.service.hash_password", return_value="hashed"),
            pytest.raises(error),
        ):
            await service.register(
                "newuser", "new@example.com", "Pass1word", "New", "client", mock_db
            )
        assert mock_db.add.call_count == 1


class TestLogin:
    async def test_wrong_username_raises_credentials_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))

        with pytest.raises(InvalidCredentialsError):
            await service.login("nobody", "Pass1word", mock_db)

    async def test_wrong_password_raises_credentials_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))

        with (
            patch("src.cb_gateway.user.service.verify_password", return_value=False),
            pytest.raises(InvalidCredentialsError),
        ):
            await service.login("alice", "WrongPass1", mock_db)

    async def test_disabled_account_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user(is_active=False)))

        with (
            patch("src.cb_gateway.user.service.verify_password", return_value=True),
            pytest.raises(AccountDisabledError),
        ):
            await service.login("alice", "Pass1word", mock_db)

    async def test_success_returns_token_pair(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user(user_type="merchant")))

        with patch("src.cb_gateway.user.service.verify_password", return_value=True):
            returned_user, access, refresh = await service.login("alice", "Pass1word", mock_db)

        assert returned_user.username == "alice"
        assert access != refresh


class TestRefresh:
    async def test_invalid_refresh_token_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh("not.a.real.token", mock_db)
        mock_db.execute.assert_not_awaited()

    async def test_new_access_token_carries_current_role(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        user = _make_user(user_type="merchant")
        mock_db.execute = AsyncMock(return_value=_result(user))

        access = await service.refresh(create_refresh_token(str(user.id)), mock_db)

        payload = decode_token(access, expected_type="access")
        assert payload["sub"] == str(user.id)
        assert payload["role"] == "merchant"

    async def test_disabled_user_cannot_refresh(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        user = _make_user(is_active=False)
        mock_db.execute = AsyncMock(return_value=_result(user))

        with pytest.raises(AccountDisabledError):
            await service.refresh(create_refresh_token(str(user.id)), mock_db)

    async def test_deleted_user_cannot_refresh(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))

        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh(create_refresh_token(str(uuid.uuid4())), mock_db)


class TestGetUser:
    async def test_malformed_id_is_not_found_without_query(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        with pytest.raises(UserNotFoundError):
            await service.get_user("not-a-uuid", mock_db)
        mock_db.execute.assert_not_awaited()

    async def test_missing_user_raises(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(UserNotFoundError):
            await service.get_user(str(uuid.uuid4()), mock_db)


class TestInvitationLookup:
    async def test_code_is_normalised(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        referrer = _make_user()
        mock_db.execute = AsyncMock(return_value=_result(referrer))

        assert await service.get_by_invitation_code(" cbaaaaaa ", mock_db) is referrer

    async def test_unknown_code(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(InvalidReferralCodeError):
            await service.get_by_invitation_code("CBZZZZZZ", mock_db)

    async def test_disabled_owner(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user(is_active=False)))
        with pytest.raises(InvalidReferralCodeError):
            await service.get_by_invitation_code("CBAAAAAA", mock_db)
