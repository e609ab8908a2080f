"""Unit tests for WithdrawalService (mock repositories)."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.cb_account.domain.models import Account
from src.cb_common.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InvalidStatusTransitionError,
    WithdrawalBelowMinimumError,
    WithdrawalExceedsBalanceError,
    WithdrawalNotFoundError,
)
from src.cb_pricing.domain.rates import RateConfig
from src.cb_withdrawal.application.service import WithdrawalService
from src.cb_withdrawal.domain.models import WithdrawalRequest

RATES = RateConfig()

BANK = {
    "full_name": "Maria Souza",
    "store_name": "Padaria Central",
    "phone": "+55 11 99999-0000",
    "email": "maria@example.com",
    "bank_name": "Banco do Brasil",
    "agency": "1234",
    "account": "56789-0",
    "payment_method": "pix",
}


def _make_account(available: int = 50000, frozen: int = 0) -> Account:
    now = datetime.now(UTC)
    return Account("acc-1", "merchant-1", available, frozen, 1, now, now)


def _make_request(status: str = "pending", merchant_id: str = "merchant-1") -> WithdrawalRequest:
    return WithdrawalRequest(
        id="WD1",
        merchant_id=merchant_id,
        amount=10000,
        fee_amount=500,
        net_amount=9500,
        fee_rate=Decimal("0.05"),
        status=status,
        bank_details=BANK,
    )


@pytest.fixture
def repo() -> AsyncMock:
    mock = AsyncMock()
    mock.insert.side_effect = lambda db, req: req
    return mock


@pytest.fixture
def accounts() -> AsyncMock:
    mock = AsyncMock()
    mock.get_account_by_user_id.return_value = _make_account()
    return mock


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(repo: AsyncMock, accounts: AsyncMock, notifier: AsyncMock) -> WithdrawalService:
    return WithdrawalService(repo=repo, accounts=accounts, notifier=notifier)


class TestWallet:
    async def test_summary(
        self, service: WithdrawalService, repo: AsyncMock, accounts: AsyncMock, db: AsyncMock
    ) -> None:
        accounts.get_account_by_user_id.return_value = _make_account(40000, 10000)
        repo.pending_summary.return_value = (10000, 1)

        result = await service.wallet(db, "merchant-1", RATES)

        assert result.available_balance == "400.00"
        assert result.frozen_balance == "100.00"
        assert result.pending_amount == "100.00"
        assert result.pending_count == 1
        assert result.min_withdrawal == "20.00"
        assert result.withdrawal_fee_percent == "5.00"

    async def test_missing_account(
        self, service: WithdrawalService, accounts: AsyncMock, db: AsyncMock
    ) -> None:
        accounts.get_account_by_user_id.return_value = None
        with pytest.raises(AccountNotFoundError):
            await service.wallet(db, "merchant-1", RATES)


class TestPreview:
    async def test_fee_breakdown(self, service: WithdrawalService, db: AsyncMock) -> None:
        result = await service.preview(db, "merchant-1", Decimal("100.00"), RATES)
        assert result.fee_amount == "5.00"
        assert result.net_amount == "95.00"
        assert result.fee_percent == "5.00"

    async def test_over_balance(self, service: WithdrawalService, db: AsyncMock) -> None:
        with pytest.raises(WithdrawalExceedsBalanceError):
            await service.preview(db, "merchant-1", Decimal("500.01"), RATES)


class TestCreate:
    async def test_freezes_amount_and_stores_request(
        self, service: WithdrawalService, repo: AsyncMock, accounts: AsyncMock, db: AsyncMock
    ) -> None:
        result = await service.create(db, "merchant-1", Decimal("100.00"), BANK, RATES)

        assert result.id.startswith("WD")
        assert result.status == "pending"
        assert result.amount == "100.00"
        assert result.fee_amount == "5.00"
        assert result.net_amount == "95.00"
        assert result.bank_details["bank_name"] == "Banco do Brasil"
        freeze_args = accounts.freeze_funds.await_args.args
        assert freeze_args[1:5] == ("merchant-1", 10000, "WITHDRAWAL", result.id)
        db.commit.assert_awaited_once()

    async def test_below_minimum(
        self, service: WithdrawalService, accounts: AsyncMock, db: AsyncMock
    ) -> None:
        with pytest.raises(WithdrawalBelowMinimumError):
            await service.create(db, "merchant-1", Decimal("19.99"), BANK, RATES)
        accounts.freeze_funds.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_concurrent_spend_caught_by_freeze(
        self, service: WithdrawalService, repo: AsyncMock, accounts: AsyncMock, db: AsyncMock
    ) -> None:
        accounts.freeze_funds.side_effect = InsufficientBalanceError(10000, 2000)

        with pytest.raises(InsufficientBalanceError):
            await service.create(db, "merchant-1", Decimal("100.00"), BANK, RATES)
        repo.insert.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_merchant_and_admins_are_notified(
        self, service: WithdrawalService, notifier: AsyncMock, db: AsyncMock
    ) -> None:
        result = await service.create(db, "merchant-1", Decimal("100.00"), BANK, RATES)

        notifier.withdrawal_status_changed.assert_awaited_once_with(
            db, "merchant-1", result.id, "pending", 10000, 9500,
            admin_notes=None, merchant_name="Padaria Central",
        )


class TestLifecycle:
    async def test_merchant_cancel_releases_funds(
        self, service: WithdrawalService, repo: AsyncMock, accounts: AsyncMock, db: AsyncMock
    ) -> None:
        repo.get_by_id.return_value = _make_request()
        repo.transition.return_value = _make_request("cancelled")

        result = await service.cancel(db, "merchant-1", "WD1")

        assert result.status == "cancelled"
        repo.transition.assert_awaited_once_with(db, "WD1", "cancelled", None, None)
        assert accounts.unfreeze_funds.await_args.args[1:3] == ("merchant-1", 10000)
        accounts.pay_out_frozen.assert_not_awaited()

    async def test_cancel_someone_elses_request(
        self, service: WithdrawalService, repo: AsyncMock, db: AsyncMock
    ) -> None:
        repo.get_by_id.return_value = _make_request(merchant_id="merchant-2")
        with pytest.raises(WithdrawalNotFoundError):
            await service.cancel(db, "merchant-1", "WD1")

    async def test_admin_complete_pays_out_frozen(
        self, service: WithdrawalService, repo: AsyncMock, accounts: AsyncMock, db: AsyncMock
    ) -> None:
        repo.get_by_id.return_value = _make_request()
        done = _make_request("completed")
        done.processed_by = "admin-1"
        repo.transition.return_value = done

        result = await service.process(db, "admin-1", "WD1", "completed", "sent via PIX")

        assert result.status == "completed"
        assert result.processed_by == "admin-1"
        repo.transition.assert_awaited_once_with(db, "WD1", "completed", "admin-1", "sent via PIX")
        assert accounts.pay_out_frozen.await_args.args[1:3] == ("merchant-1", 10000)
        accounts.unfreeze_funds.assert_not_awaited()
        db.commit.assert_awaited_once()

    async def test_admin_reject_releases_funds(
        self, service: WithdrawalService, repo: AsyncMock, accounts: AsyncMock, db: AsyncMock
    ) -> None:
        repo.get_by_id.return_value = _make_request()
        repo.transition.return_value = _make_request("rejected")

        await service.process(db, "admin-1", "WD1", "rejected", "bank details invalid")

        accounts.unfreeze_funds.assert_awaited_once()

    async def test_processing_a_final_request(
        self, service: WithdrawalService, repo: AsyncMock, accounts: AsyncMock, db: AsyncMock
    ) -> None:
        repo.get_by_id.return_value = _make_request("completed")

        with pytest.raises(InvalidStatusTransitionError):
            await service.process(db, "admin-1", "WD1", "rejected")
        repo.transition.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_admin_cannot_cancel(self, service: WithdrawalService, db: AsyncMock) -> None:
        with pytest.raises(InvalidStatusTransitionError):
            await service.process(db, "admin-1", "WD1", "cancelled")

    async def test_lost_race(
        self, service: WithdrawalService, repo: AsyncMock, accounts: AsyncMock,
        notifier: AsyncMock, db: AsyncMock,
    ) -> None:
        repo.get_by_id.return_value = _make_request()
        repo.transition.return_value = None

        with pytest.raises(InvalidStatusTransitionError):
            await service.process(db, "admin-1", "WD1", "completed")
        accounts.pay_out_frozen.assert_not_awaited()
        notifier.withdrawal_status_changed.assert_not_awaited()

    @pytest.mark.parametrize(
        ("target", "notes"),
        [("completed", "sent via PIX"), ("rejected", "bank details invalid")],
    )
    async def test_decision_notifies_merchant(
        self,
        service: WithdrawalService,
        repo: AsyncMock,
        notifier: AsyncMock,
        db: AsyncMock,
        target: str,
        notes: str,
    ) -> None:
        repo.get_by_id.return_value = _make_request()
        decided = _make_request(target)
        decided.admin_notes = notes
        repo.transition.return_value = decided

        await service.process(db, "admin-1", "WD1", target, notes)

        args = notifier.withdrawal_status_changed.await_args
        assert args.args[1:4] == ("merchant-1", "WD1", target)
        assert args.kwargs["admin_notes"] == notes

    async def test_notice_failure_rolls_back_decision(
        self, service: WithdrawalService, repo: AsyncMock, notifier: AsyncMock, db: AsyncMock
    ) -> None:
        repo.get_by_id.return_value = _make_request()
        repo.transition.return_value = _make_request("cancelled")
        notifier.withdrawal_status_changed.side_effect = RuntimeError("insert failed")

        with pytest.raises(RuntimeError):
            await service.cancel(db, "merchant-1", "WD1")
        db.commit.assert_not_awaited()
        db.rollback.assert_awaited_once()


class TestListing:
    async def test_own_list_paginates(
        self, service: WithdrawalService, repo: AsyncMock, db: AsyncMock
    ) -> None:
        rows = []
        for wid in ("WD3", "WD2", "WD1"):
            row = _make_request()
            row.id = wid
            rows.append(row)
        repo.list_requests.return_value = rows

        result = await service.list_own(db, "merchant-1", "pending", None, 2)

        repo.list_requests.assert_awaited_once_with(db, "merchant-1", "pending", None, 3)
        assert result.has_more is True
        assert result.next_cursor == "WD2"

    async def test_admin_list_is_unscoped(
        self, service: WithdrawalService, repo: AsyncMock, db: AsyncMock
    ) -> None:
        repo.list_requests.return_value = []
        await service.list_all(db, None, None, 20)
        repo.list_requests.assert_awaited_once_with(db, None, None, None, 21)
