"""
Test configuration and fixtures
FastAPI + SQLAlchemy async + pytest, with SQLite standing in for the seat store
"""

import os

# Set test environment before the application settings are created
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_cinema_seats.db")
os.environ.pop("WEBHOOK_URL", None)

import json
from typing import AsyncGenerator, List
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cinema_seats.core.database import Base
from cinema_seats.core.seeding import provision_seats
from cinema_seats.schemas.seat import SeatChangeEvent
from cinema_seats.services.booking_service import BookingService
from cinema_seats.services.change_feed import SeatChangeFeed
from cinema_seats.services.webhook_service import WebhookService

WEBHOOK_URL = "https://hooks.example.test/api/webhook/seats"


@pytest_asyncio.fixture(scope="function")
async def test_db(tmp_path):
    """Fresh SQLite database per test"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'seats.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_db):
    return async_sessionmaker(
        test_db,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with session_factory() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest_asyncio.fixture
async def test_seats(session_factory):
    """Rows A (5 seats) and B (6 seats), all free"""
    async with session_factory() as session:
        return await provision_seats(session, {"A": 5, "B": 6})


@pytest.fixture
def redis_stub():
    """Stands in for the Redis manager; records published messages"""
    manager = MagicMock()
    manager.publish = AsyncMock(return_value=1)
    return manager


@pytest.fixture
def change_feed(redis_stub):
    return SeatChangeFeed(redis_stub, "test:seats:changes")


@pytest.fixture
def published_events(redis_stub):
    """Decoded events published so far"""
    def _events() -> List[SeatChangeEvent]:
        return [
            SeatChangeEvent.model_validate_json(call.args[1])
            for call in redis_stub.publish.await_args_list
        ]
    return _events


@pytest.fixture
def webhook_calls():
    return []


@pytest.fixture
def webhook_status():
    return {"code": 200}


@pytest.fixture
def webhook_service(webhook_calls, webhook_status):
    def handler(request: httpx.Request) -> httpx.Response:
        webhook_calls.append(json.loads(request.content))
        return httpx.Response(webhook_status["code"], json={"ok": True})

    return WebhookService(
        url=WEBHOOK_URL,
        timeout=1.0,
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )


@pytest.fixture
def booking_service(change_feed, webhook_service):
    return BookingService(feed=change_feed, webhook=webhook_service)


@pytest.fixture
def app(session_factory, booking_service, change_feed):
    """Application with store, feed and webhook swapped for test doubles"""
    from cinema_seats.main import app
    from cinema_seats.core.database import get_session
    from cinema_seats.services.booking_service import get_booking_service
    from cinema_seats.api.v1.endpoints.seats import get_change_feed

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_booking_service] = lambda: booking_service
    app.dependency_overrides[get_change_feed] = lambda: change_feed

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
