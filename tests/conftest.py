"""Shared fixtures: an in-memory SQLite database and record factories."""

import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "api"))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SIMULATION_LOCK_ENABLED", "false")

from datetime import datetime

import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from db.database import Base
from models import Driver, Route, Order

REQUESTED_AT = datetime(2025, 1, 6, 9, 0)

class RecordFactory:
    """Creates committed rows with sensible defaults."""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def _save(self, record):
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def route(self, **overrides) -> Route:
        fields = dict(
            route_code=f"RT-{self._next():03d}",
            distance_km=10.0,
            traffic_level="Medium",
            base_time_minutes=60,
            is_active=True,
        )
        fields.update(overrides)
        return await self._save(Route(**fields))

    async def driver(self, **overrides) -> Driver:
        n = self._next()
        fields = dict(
            name=f"Driver {n}",
            current_shift_hours=0.0,
            past_week_work_hours=[0.0] * 7,
            is_fatigued=False,
            fatigue_level="normal",
            status="available",
        )
        fields.update(overrides)
        return await self._save(Driver(**fields))

    async def order(self, route: Route, **overrides) -> Order:
        fields = dict(
            order_code=f"ORD-{self._next():04d}",
            value_rs=1500.0,
            route_id=route.id,
            delivery_timestamp=REQUESTED_AT,
            status="pending",
        )
        fields.update(overrides)
        return await self._save(Order(**fields))


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def make(db):
    return RecordFactory(db)


@pytest_asyncio.fixture
async def client(db):
    """HTTP client bound to the app, sharing the test session."""
    from httpx import AsyncClient, ASGITransport
    from db.database import get_db
    from main import app

    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
