"""Apply a list of Postings to accounts inside the caller's transaction."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_account.domain.models import LedgerEntry, Posting
from src.cb_account.domain.repository import AccountRepositoryProtocol


async def apply_postings(
    db: AsyncSession,
    repo: AccountRepositoryProtocol,
    postings: list[Posting],
    ref_type: str,
    ref_id: str,
) -> list[LedgerEntry]:
    """Post in list order. Builders choose the order debits and credits run in.

    Zero-amount postings are skipped. A guarded debit that fails raises
    InsufficientBalanceError and the caller rolls the whole batch back.
    """
    entries: list[LedgerEntry] = []
    for posting in postings:
        if posting.amount == 0:
            continue
        if posting.amount < 0:
            _, entry = await repo.debit(
                db, posting.user_id, -posting.amount, posting.entry_type,
                ref_type, ref_id, posting.description,
            )
        else:
            _, entry = await repo.credit(
                db, posting.user_id, posting.amount, posting.entry_type,
                ref_type, ref_id, posting.description,
            )
        entries.append(entry)
    return entries
