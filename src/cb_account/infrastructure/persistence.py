"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
The balance guard sits in the WHERE clause, so concurrent requests against
the same account serialize on the row lock and the loser sees 0 rows, which
is reported as InsufficientBalanceError. No read-modify-write in Python.

Transaction ownership: the CALLER (application service) starts and commits
the transaction; every method here runs inside it.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_account.domain.models import Account, LedgerEntry
from src.cb_common.enums import LedgerEntryType
from src.cb_common.errors import AccountNotFoundError, InsufficientBalanceError, InternalError

_ACCOUNT_COLUMNS = "id, user_id, available_balance, frozen_balance, version, created_at, updated_at"

_CREDIT_SQL = text(f"""
    UPDATE accounts
    SET available_balance = available_balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_DEBIT_SQL = text(f"""
    UPDATE accounts
    SET available_balance = available_balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND available_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_FREEZE_FUNDS_SQL = text(f"""
    UPDATE accounts
    SET available_balance = available_balance - :amount,
        frozen_balance     = frozen_balance   + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND available_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_UNFREEZE_FUNDS_SQL = text(f"""
    UPDATE accounts
    SET available_balance = available_balance + :amount,
        frozen_balance     = frozen_balance   - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND frozen_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_PAY_OUT_FROZEN_SQL = text(f"""
    UPDATE accounts
    SET frozen_balance = frozen_balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND frozen_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_at
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:entry_type AS VARCHAR) IS NULL OR entry_type = CAST(:entry_type AS VARCHAR))
    ORDER BY id DESC
    LIMIT :limit
""")

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
""")


def _row_to_account(row: object) -> Account:
    return Account(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        available_balance=row.available_balance,  # type: ignore[attr-defined]
        frozen_balance=row.frozen_balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """All balance changes are single guarded statements."""

    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def _guarded_update(
        self,
        db: AsyncSession,
        sql: object,
        user_id: str,
        amount: int,
        guard_column: str,
    ) -> Account:
        """Run a guarded UPDATE; 0 rows means missing account or short balance."""
        result = await db.execute(sql, {"user_id": user_id, "amount": amount})  # type: ignore[arg-type]
        row = result.fetchone()
        if row is not None:
            return _row_to_account(row)
        account = await self.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        raise InsufficientBalanceError(amount, getattr(account, guard_column))

    async def _write_ledger(
        self,
        db: AsyncSession,
        account: Account,
        entry_type: str,
        amount: int,
        ref_type: str | None,
        ref_id: str | None,
        description: str | None,
    ) -> LedgerEntry:
        ledger_result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": account.user_id,
                "entry_type": LedgerEntryType(entry_type).value,
                "amount": amount,
                "balance_after": account.available_balance,
                "reference_type": ref_type,
                "reference_id": ref_id,
                "description": description,
            },
        )
        ledger_row = ledger_result.fetchone()
        if ledger_row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_ledger(ledger_row)

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> tuple[Account, LedgerEntry]:
        result = await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(user_id)
        account = _row_to_account(row)
        entry = await self._write_ledger(
            db, account, entry_type, amount, ref_type, ref_id, description
        )
        return account, entry

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> tuple[Account, LedgerEntry]:
        account = await self._guarded_update(
            db, _DEBIT_SQL, user_id, amount, "available_balance"
        )
        entry = await self._write_ledger(
            db, account, entry_type, -amount, ref_type, ref_id, description
        )
        return account, entry

    async def freeze_funds(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> tuple[Account, LedgerEntry]:
        account = await self._guarded_update(
            db, _FREEZE_FUNDS_SQL, user_id, amount, "available_balance"
        )
        entry = await self._write_ledger(
            db, account, LedgerEntryType.WITHDRAWAL_FREEZE, -amount,
            ref_type, ref_id, description,
        )
        return account, entry

    async def unfreeze_funds(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> tuple[Account, LedgerEntry]:
        account = await self._guarded_update(
            db, _UNFREEZE_FUNDS_SQL, user_id, amount, "frozen_balance"
        )
        entry = await self._write_ledger(
            db, account, LedgerEntryType.WITHDRAWAL_UNFREEZE, amount,
            ref_type, ref_id, description,
        )
        return account, entry

    async def pay_out_frozen(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> tuple[Account, LedgerEntry]:
        account = await self._guarded_update(
            db, _PAY_OUT_FROZEN_SQL, user_id, amount, "frozen_balance"
        )
        # Money leaves from the frozen bucket; available is unchanged.
        entry = await self._write_ledger(
            db, account, LedgerEntryType.WITHDRAWAL_PAYOUT, -amount,
            ref_type, ref_id, description,
        )
        return account, entry

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]
