"""Shared test fixtures for the jdr test suite.

db_engine  (function scope)
    A fresh in-memory SQLite database per test, schema created up front.
    StaticPool keeps every logical connection on the same database.

seeded  (function scope)
    Inserts the dev users (Alice, Bob, Charlie) and one campaign in which
    Alice is the game master and Bob a player. Charlie is deliberately left
    out so tests can exercise the non-member paths.

client  (function scope)
    An AsyncClient wired to the FastAPI app, with get_db overridden to use
    the test database.

db  (function scope)
    An AsyncSession on the test database, for asserting state written by
    HTTP requests or for ORM-only tests.

Pure evaluator tests (tests/test_dice.py) need none of these.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from jdr.database import Base, get_db
from jdr.main import _DEV_USERS, app
from jdr.models import Campaign, CampaignMember, MemberRole, User


@dataclass
class Seeded:
    alice: int
    bob: int
    charlie: int
    campaign: int


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def seeded(session_factory) -> Seeded:
    async with session_factory() as setup:
        users = [User(display_name=name) for name in _DEV_USERS]
        setup.add_all(users)
        campaign = Campaign(name="The Sunken Keep")
        setup.add(campaign)
        await setup.flush()
        alice, bob, charlie = users
        setup.add_all(
            [
                CampaignMember(
                    campaign_id=campaign.id, user_id=alice.id, role=MemberRole.game_master
                ),
                CampaignMember(campaign_id=campaign.id, user_id=bob.id, role=MemberRole.player),
            ]
        )
        await setup.commit()
        return Seeded(alice=alice.id, bob=bob.id, charlie=charlie.id, campaign=campaign.id)


@pytest_asyncio.fixture
async def client(session_factory, seeded):
    """AsyncClient wired to the app against the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.pop(get_db, None)


@pytest_asyncio.fixture
async def db(session_factory, seeded):
    async with session_factory() as session:
        yield session
