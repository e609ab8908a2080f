"""End-to-end money flows over HTTP (requires running PG + Redis).

Pre-condition: alembic upgrade head against DATABASE_URL.

Rates are the settings defaults (5% fee, 2% cashback, 1% referral, 5%
withdrawal fee, 20.00 minimum) because the lifespan does not run under
ASGITransport.
"""

from collections.abc import Awaitable, Callable
from typing import Any

import pytest
from httpx import AsyncClient

Register = Callable[..., Awaitable[Any]]

pytestmark = [pytest.mark.asyncio(loop_scope="session"), pytest.mark.integration]


async def _balance(client: AsyncClient, actor: Any) -> dict:
    resp = await client.get("/api/v1/account/balance", headers=actor.headers)
    assert resp.status_code == 200
    return resp.json()["data"]


async def _sale(
    client: AsyncClient,
    merchant: Any,
    customer: Any,
    amount: str,
    payment_method: str = "pix",
    status: str = "completed",
) -> dict:
    resp = await client.post(
        "/api/v1/sales",
        json={
            "customer_id": customer.user_id,
            "amount": amount,
            "payment_method": payment_method,
            "status": status,
        },
        headers=merchant.headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestRegistration:
    async def test_new_user_has_zero_balance(
        self, client: AsyncClient, register: Register
    ) -> None:
        actor = await register()
        data = await _balance(client, actor)
        assert data["available_balance"] == "0.00"
        assert data["frozen_balance_cents"] == 0

    async def test_unknown_referral_code(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/auth/register", json={
            "username": "nobody_referred", "email": "nobody_referred@example.com",
            "password": "TestPass1", "name": "Nobody", "referral_code": "CBZZZZZZ",
        })
        assert resp.status_code == 422


class TestSales:
    async def test_completed_sale_pays_cashback_and_referral(
        self, client: AsyncClient, register: Register
    ) -> None:
        referrer = await register()
        customer = await register(referral_code=referrer.invitation_code)
        merchant = await register("merchant")

        sale = await _sale(client, merchant, customer, "100.00")

        assert sale["merchant_net"] == "93.00"
        assert sale["referrer_id"] == referrer.user_id
        assert (await _balance(client, customer))["available_balance"] == "2.00"
        assert (await _balance(client, referrer))["available_balance"] == "1.00"

        ledger = await client.get("/api/v1/account/ledger", headers=customer.headers)
        entry = ledger.json()["data"]["items"][0]
        assert entry["entry_type"] == "CASHBACK"
        assert entry["reference_id"] == sale["id"]

    async def test_pending_then_cancel(
        self, client: AsyncClient, register: Register
    ) -> None:
        customer = await register()
        merchant = await register("merchant")
        sale = await _sale(client, merchant, customer, "40.00", "cash", "pending")

        resp = await client.post(f"/api/v1/sales/{sale['id']}/cancel", headers=merchant.headers)
        assert resp.json()["data"]["status"] == "cancelled"
        assert (await _balance(client, customer))["available_balance"] == "0.00"

        again = await client.post(f"/api/v1/sales/{sale['id']}/complete", headers=merchant.headers)
        assert again.status_code == 422
        assert again.json()["code"] == 4002

    async def test_refund_reverses_cashback(
        self, client: AsyncClient, register: Register
    ) -> None:
        customer = await register()
        merchant = await register("merchant")
        sale = await _sale(client, merchant, customer, "50.00")
        assert (await _balance(client, customer))["available_balance"] == "1.00"

        resp = await client.post(f"/api/v1/sales/{sale['id']}/refund", headers=merchant.headers)

        assert resp.json()["data"]["status"] == "refunded"
        assert (await _balance(client, customer))["available_balance"] == "0.00"

    async def test_strangers_cannot_see_a_sale(
        self, client: AsyncClient, register: Register
    ) -> None:
        customer = await register()
        merchant = await register("merchant")
        stranger = await register()
        sale = await _sale(client, merchant, customer, "10.00")

        resp = await client.get(f"/api/v1/sales/{sale['id']}", headers=stranger.headers)
        assert resp.status_code == 404


class TestPaymentCodes:
    async def test_redeem_once(
        self, client: AsyncClient, register: Register
    ) -> None:
        customer = await register()
        shop = await register("merchant")
        cafe = await register("merchant")
        await _sale(client, shop, customer, "100.00")  # 2.00 cashback

        qr = await client.post(
            "/api/v1/payment-qr", json={"amount": "1.50"}, headers=cafe.headers
        )
        assert qr.status_code == 201
        code = qr.json()["data"]["code"]

        paid = await client.post(f"/api/v1/payment-qr/{code}/redeem", headers=customer.headers)
        assert paid.status_code == 200, paid.text
        assert paid.json()["data"]["sale"]["source"] == "qrcode"
        # 2.00 - 1.50 paid + 0.03 cashback
        assert (await _balance(client, customer))["available_balance"] == "0.53"
        # 1.50 - 0.08 fee - 0.03 cashback
        assert (await _balance(client, cafe))["available_balance"] == "1.39"

        twice = await client.post(f"/api/v1/payment-qr/{code}/redeem", headers=customer.headers)
        assert twice.status_code == 422
        assert twice.json()["code"] == 4004

    async def test_redeem_without_funds(
        self, client: AsyncClient, register: Register
    ) -> None:
        customer = await register()
        cafe = await register("merchant")
        qr = await client.post("/api/v1/payment-qr", json={"amount": "5.00"}, headers=cafe.headers)
        code = qr.json()["data"]["code"]

        resp = await client.post(f"/api/v1/payment-qr/{code}/redeem", headers=customer.headers)
        assert resp.status_code == 422
        assert resp.json()["code"] == 2001

        still_open = await client.get(f"/api/v1/payment-qr/{code}", headers=customer.headers)
        assert still_open.json()["data"]["status"] == "active"


class TestTransfers:
    async def test_transfer_and_overdraw(
        self, client: AsyncClient, register: Register
    ) -> None:
        sender = await register()
        receiver = await register()
        merchant = await register("merchant")
        await _sale(client, merchant, sender, "100.00")

        ok = await client.post(
            "/api/v1/transfers",
            json={"to_user_id": receiver.user_id, "amount": "0.75"},
            headers=sender.headers,
        )
        assert ok.status_code == 201, ok.text
        assert (await _balance(client, receiver))["available_balance"] == "0.75"

        too_much = await client.post(
            "/api/v1/transfers",
            json={"to_user_id": receiver.user_id, "amount": "5.00"},
            headers=sender.headers,
        )
        assert too_much.status_code == 422
        assert too_much.json()["code"] == 2001


class TestWithdrawals:
    async def test_below_minimum_and_wallet(
        self, client: AsyncClient, register: Register
    ) -> None:
        merchant = await register("merchant")

        wallet = await client.get("/api/v1/withdrawals/wallet", headers=merchant.headers)
        assert wallet.json()["data"]["min_withdrawal"] == "20.00"

        resp = await client.get(
            "/api/v1/withdrawals/preview", params={"amount": "5.00"}, headers=merchant.headers
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 5002

    async def test_clients_cannot_withdraw(
        self, client: AsyncClient, register: Register
    ) -> None:
        customer = await register()
        resp = await client.get("/api/v1/withdrawals/wallet", headers=customer.headers)
        assert resp.status_code == 403


class TestReferrals:
    async def test_invite_link_and_earnings(
        self, client: AsyncClient, register: Register
    ) -> None:
        referrer = await register()
        invite = await client.get(f"/api/v1/invite/{referrer.invitation_code.lower()}")
        assert invite.status_code == 200
        assert invite.json()["data"]["invitation_code"] == referrer.invitation_code

        friend = await register(referral_code=referrer.invitation_code)
        merchant = await register("merchant")
        await _sale(client, merchant, friend, "100.00")

        resp = await client.get("/api/v1/referrals", headers=referrer.headers)
        data = resp.json()["data"]
        assert data["referral_count"] == 1
        assert data["total_earned"] == "1.00"
        assert data["items"][0]["user_id"] == friend.user_id
        assert data["items"][0]["completed_sales"] == 1
        assert data["items"][0]["bonus_earned"] == "1.00"

    async def test_unknown_invite(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/invite/CBZZZZZZ")
        assert resp.status_code == 422
        assert resp.json()["code"] == 1006


class TestNotifications:
    async def test_transfer_lands_in_recipient_inbox(
        self, client: AsyncClient, register: Register
    ) -> None:
        sender = await register()
        receiver = await register()
        merchant = await register("merchant")
        await _sale(client, merchant, sender, "100.00")
        await client.post(
            "/api/v1/transfers",
            json={"to_user_id": receiver.user_id, "amount": "1.50"},
            headers=sender.headers,
        )

        inbox = (await client.get("/api/v1/notifications", headers=receiver.headers)).json()["data"]
        assert inbox["unread_count"] == 1
        notice = inbox["items"][0]
        assert notice["type"] == "transfer"
        assert notice["data"]["amount"] == "1.50"

        read = await client.patch(
            f"/api/v1/notifications/{notice['id']}/read", headers=receiver.headers
        )
        assert read.json()["data"]["is_read"] is True
        stranger = await client.delete(
            f"/api/v1/notifications/{notice['id']}", headers=sender.headers
        )
        assert stranger.status_code == 404
        assert stranger.json()["code"] == 7001
