"""
Shared fixtures: an in-memory SQLite store and an HTTP client bound to the app.
"""

import os

# Settings are read at import time, so the environment must be in place first.
os.environ["JWT_SECRET"] = "test-signing-secret"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from database.session import async_session_factory, engine, init_models
from main import app


@pytest_asyncio.fixture
async def db():
    """Fresh schema per test; disposing the engine drops the in-memory database."""
    await init_models()
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def session(db):
    async with async_session_factory() as s:
        yield s
        await s.rollback()


@pytest_asyncio.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
