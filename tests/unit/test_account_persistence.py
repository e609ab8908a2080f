"""Unit tests for AccountRepository using MagicMock AsyncSession."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.cb_account.infrastructure.persistence import AccountRepository
from src.cb_common.enums import LedgerEntryType
from src.cb_common.errors import AccountNotFoundError, InsufficientBalanceError


def _account_row(available: int = 10000, frozen: int = 0) -> MagicMock:
    row = MagicMock()
    row.id = "acc-uuid"
    row.user_id = "user-1"
    row.available_balance = available
    row.frozen_balance = frozen
    row.version = 2
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _ledger_row(entry_type: str, amount: int, balance_after: int) -> MagicMock:
    row = MagicMock()
    row.id = 7
    row.user_id = "user-1"
    row.entry_type = entry_type
    row.amount = amount
    row.balance_after = balance_after
    row.reference_type = "SALE"
    row.reference_id = "SL1"
    row.description = "desc"
    row.created_at = datetime.now(UTC)
    return row


def _result(row: object) -> MagicMock:
    res = MagicMock()
    res.fetchone.return_value = row
    return res


@pytest.fixture
def db() -> MagicMock:
    return MagicMock()


class TestCredit:
    async def test_credit_writes_ledger_with_positive_amount(self, db: MagicMock) -> None:
        db.execute = AsyncMock(side_effect=[
            _result(_account_row(10200)),
            _result(_ledger_row("CASHBACK", 200, 10200)),
        ])

        account, entry = await AccountRepository().credit(
            db, "user-1", 200, LedgerEntryType.CASHBACK, "SALE", "SL1", "desc"
        )

        assert account.available_balance == 10200
        assert entry.amount == 200
        ledger_params = db.execute.await_args_list[1].args[1]
        assert ledger_params["entry_type"] == "CASHBACK"
        assert ledger_params["amount"] == 200
        assert ledger_params["balance_after"] == 10200

    async def test_missing_account(self, db: MagicMock) -> None:
        db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(AccountNotFoundError):
            await AccountRepository().credit(db, "ghost", 1, "CASHBACK", "SALE", "SL1", "d")


class TestDebit:
    async def test_debit_records_negative_amount(self, db: MagicMock) -> None:
        db.execute = AsyncMock(side_effect=[
            _result(_account_row(9000)),
            _result(_ledger_row("TRANSFER_OUT", -1000, 9000)),
        ])

        _, entry = await AccountRepository().debit(
            db, "user-1", 1000, "TRANSFER_OUT", "TRANSFER", "TR1", "desc"
        )

        assert db.execute.await_args_list[1].args[1]["amount"] == -1000
        assert entry.amount == -1000

    async def test_guard_failure_reports_available(self, db: MagicMock) -> None:
        db.execute = AsyncMock(side_effect=[_result(None), _result(_account_row(300))])

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await AccountRepository().debit(
                db, "user-1", 1000, "TRANSFER_OUT", "TRANSFER", "TR1", "desc"
            )
        assert "300" in exc_info.value.message

    async def test_guard_failure_without_account(self, db: MagicMock) -> None:
        db.execute = AsyncMock(side_effect=[_result(None), _result(None)])
        with pytest.raises(AccountNotFoundError):
            await AccountRepository().debit(db, "ghost", 1, "TRANSFER_OUT", "TRANSFER", "TR1", "d")


class TestFrozenBucket:
    async def test_unfreeze_guard_checks_frozen_balance(self, db: MagicMock) -> None:
        db.execute = AsyncMock(side_effect=[_result(None), _result(_account_row(50000, 40))])

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await AccountRepository().unfreeze_funds(db, "user-1", 1000, "WITHDRAWAL", "WD1", "d")
        assert "available 40 cents" in exc_info.value.message

    async def test_pay_out_uses_payout_entry_type(self, db: MagicMock) -> None:
        db.execute = AsyncMock(side_effect=[
            _result(_account_row(500, 0)),
            _result(_ledger_row("WITHDRAWAL_PAYOUT", -1000, 500)),
        ])

        await AccountRepository().pay_out_frozen(db, "user-1", 1000, "WITHDRAWAL", "WD1", "d")

        params = db.execute.await_args_list[1].args[1]
        assert params["entry_type"] == "WITHDRAWAL_PAYOUT"
        assert params["amount"] == -1000
        assert params["balance_after"] == 500
