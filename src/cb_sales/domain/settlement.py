"""Turn a sale into ledger postings.

Completing a sale always pays the customer's cashback out of the merchant's
share (merchant_net = amount - platform_fee - client_cashback) and, when
there is a referrer, the referral bonus out of the platform fee. When the
customer paid from platform balance (payment_method=cashback, only through
a payment QR code) the full amount is also debited from the customer and
the merchant is credited merchant_net. Other payment methods settle outside
the platform, so the merchant's proceeds never touch the ledger.

A refund reverses exactly the postings of the completed sale.
"""

from src.cb_account.domain.models import Posting
from src.cb_common.enums import LedgerEntryType, PaymentMethod
from src.cb_sales.domain.models import Sale

_REVERSAL_TYPES = {
    LedgerEntryType.CASHBACK: LedgerEntryType.CASHBACK_REVERSAL,
    LedgerEntryType.REFERRAL_BONUS: LedgerEntryType.REFERRAL_REVERSAL,
    LedgerEntryType.SALE_PAYMENT: LedgerEntryType.SALE_PAYMENT_REFUND,
    LedgerEntryType.SALE_PROCEEDS: LedgerEntryType.SALE_PROCEEDS_REVERSAL,
}


def build_sale_postings(sale: Sale) -> list[Posting]:
    postings: list[Posting] = []
    if sale.payment_method == PaymentMethod.CASHBACK:
        # Debit first: a customer cannot pay with the cashback of this same sale
        postings.append(Posting(
            sale.customer_id, -sale.amount, LedgerEntryType.SALE_PAYMENT,
            f"Payment for sale {sale.id}",
        ))
        postings.append(Posting(
            sale.merchant_id, sale.merchant_net, LedgerEntryType.SALE_PROCEEDS,
            f"Proceeds of sale {sale.id}",
        ))
    postings.append(Posting(
        sale.customer_id, sale.client_cashback, LedgerEntryType.CASHBACK,
        f"Cashback on sale {sale.id}",
    ))
    if sale.referrer_id is not None:
        postings.append(Posting(
            sale.referrer_id, sale.referral_bonus, LedgerEntryType.REFERRAL_BONUS,
            f"Referral bonus on sale {sale.id}",
        ))
    return postings


def build_refund_postings(sale: Sale) -> list[Posting]:
    """Credits back to the customer run before any reversal debit."""
    reversals = [
        p.reversed(_REVERSAL_TYPES[p.entry_type], f"Refund of sale {sale.id}")
        for p in build_sale_postings(sale)
    ]
    return sorted(reversals, key=lambda p: p.amount < 0)
