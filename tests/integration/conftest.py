"""Integration-test fixtures (requires running PG + Redis, migrated schema).

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.
"""

import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from src.main import app

PASSWORD = "TestPass1"


@dataclass
class Actor:
    user_id: str
    invitation_code: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


async def _register(
    client: AsyncClient,
    user_type: str = "client",
    referral_code: str | None = None,
) -> Actor:
    """Register a fresh user of the given type and log them in."""
    username = f"{user_type}_{uuid.uuid4().hex[:8]}"
    body: dict[str, str] = {
        "username": username,
        "email": f"{username}@example.com",
        "password": PASSWORD,
        "name": username,
        "user_type": user_type,
    }
    if user_type == "merchant":
        body["store_name"] = f"Store {username}"
    if referral_code:
        body["referral_code"] = referral_code
    reg = await client.post("/api/v1/auth/register", json=body)
    assert reg.status_code == 201, reg.text
    login = await client.post(
        "/api/v1/auth/login", json={"username": username, "password": PASSWORD}
    )
    data = reg.json()["data"]
    return Actor(data["user_id"], data["invitation_code"], login.json()["data"]["access_token"])


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register(client: AsyncClient) -> Callable[..., Awaitable[Actor]]:
    """register("merchant") / register(referral_code=...) -> logged-in Actor."""

    async def _make(user_type: str = "client", referral_code: str | None = None) -> Actor:
        return await _register(client, user_type, referral_code)

    return _make
