from __future__ import annotations

import time
from collections.abc import AsyncGenerator

import httpx
import pytest
import respx

from core import cloudant, settings

CLOUDANT_URL = "https://test-account.cloudant.com"
IAM_URL = "https://iam.test.example/identity/token"


# 1) stable env: every test talks to the same fake account
@pytest.fixture(autouse=True)
def _cloudant_env(monkeypatch):
    monkeypatch.setenv("CLOUDANT_URL", CLOUDANT_URL)
    monkeypatch.setenv("CLOUDANT_IAM_URL", IAM_URL)
    monkeypatch.setenv("CLOUDANT_IAM_APIKEY", "test-apikey")
    for name in ("DB_SHOP", "DB_NEWS_RESEARCH", "DB_NEWS_TWITTER", "DB_NEWS_POLITICS"):
        monkeypatch.delenv(name, raising=False)
    yield


# 2) intercept Cloudant + IAM HTTP calls; IAM always hands out a token
@pytest.fixture
async def cloudant_mock() -> AsyncGenerator[respx.MockRouter, None]:
    async with respx.mock(assert_all_called=False) as mock:
        mock.post(IAM_URL, name="iam").respond(
            200,
            json={
                "access_token": "test-token",
                "expires_in": 3600,
                "expiration": int(time.time()) + 3600,
            },
        )
        yield mock


# 3) a client that went through the startup check with every collection present
@pytest.fixture
async def connected(cloudant_mock: respx.MockRouter) -> AsyncGenerator[respx.MockRouter, None]:
    cloudant_mock.get(f"{CLOUDANT_URL}/_all_dbs", name="all_dbs").respond(
        200,
        json=settings.expected_collections() + ["_replicator"],
    )
    await cloudant.connect(settings.expected_collections())
    yield cloudant_mock
    await cloudant.close_client()


# 4) route an httpx client to the in-process ASGI app
@pytest.fixture
async def api_client(connected: respx.MockRouter) -> AsyncGenerator[httpx.AsyncClient, None]:
    from main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
