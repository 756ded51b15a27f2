# tests/conftest.py
from __future__ import annotations

import itertools

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database import Database
from mystic.database.models import User
from mystic.services.container import build_services
from mystic.services.orbs import OrbEconomyConfig

_telegram_ids = itertools.count(1000)


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'mystic_test.db'}")
    await database.init_models()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def session(db):
    async with db.session() as s:
        yield s


@pytest.fixture
def orb_config():
    return OrbEconomyConfig()


@pytest.fixture
def services(orb_config):
    return build_services(orb_config)


async def make_user(session: AsyncSession, *, pro: bool = False, **fields) -> User:
    user = User(telegram_id=next(_telegram_ids), username="seeker", pro_entitlement=pro, **fields)
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def user(session):
    return await make_user(session)


@pytest_asyncio.fixture
async def pro_user(session):
    return await make_user(session, pro=True)
