"""Integration-test fixtures.

Each test gets a fresh app lifespan: new stores on the in-memory sync
backend, with the admin account bootstrapped as on a first run.
ASGITransport does not drive the lifespan, so the fixture enters it.
"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app


@pytest_asyncio.fixture
async def client() -> AsyncClient:  # type: ignore[override]
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


@pytest_asyncio.fixture
async def auth_client(client: AsyncClient) -> AsyncClient:
    """Client with an active session for `alice`."""
    resp = await client.post(
        "/api/v1/auth/signup", json={"username": "alice", "password": "secret1"}
    )
    assert resp.status_code == 201
    return client
