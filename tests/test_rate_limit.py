"""
Heritage Numérique Backend — Rate Limit Middleware Tests
=========================================================

What:  The sliding-window limiter on a minimal app, so the global test
       settings (which effectively disable limiting) do not interfere.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from heritage.middleware.rate_limit import RateLimitMiddleware


def _app(max_requests):
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60)

    @app.get("/ping")
    async def ping():
        return {"pong": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


@pytest.mark.asyncio
async def test_requests_over_the_limit_get_429():
    transport = ASGITransport(app=_app(max_requests=2))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        assert (await client.get("/ping")).status_code == 200
        assert (await client.get("/ping")).status_code == 200

        response = await client.get("/ping")

    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) >= 1
    body = response.json()
    assert body["status"] == 429
    assert body["path"] == "/ping"
    assert body["error"] == "rate_limit_exceeded"


@pytest.mark.asyncio
async def test_health_is_never_limited():
    transport = ASGITransport(app=_app(max_requests=1))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        for _ in range(5):
            assert (await client.get("/health")).status_code == 200
