"""
Pytest configuration for the actionpipe test suite.

Configures:
- pytest-asyncio for async test support
- a throwaway SQLite file for the HTTP app (set before the app is imported)
- in-memory async SQLite sessions and seeded users for tool executors
"""
import os
import tempfile

import pytest
import pytest_asyncio

_TEST_DB = os.path.join(tempfile.mkdtemp(prefix="actionpipe-"), "test.db")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB}")
os.environ.setdefault("DRY_RUN_TOOLS", "false")
os.environ.setdefault("STRICT_TOOL_VALIDATION", "false")

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from actionpipe.db.base import Base  # noqa: E402
from actionpipe.db import models  # noqa: E402,F401
from actionpipe.db.models import User  # noqa: E402
from actionpipe.db.repo import create_user  # noqa: E402
from actionpipe.tools.registry import CallerContext  # noqa: E402

pytest_plugins = ["pytest_asyncio"]


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database per test."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    Session = async_sessionmaker(engine, expire_on_commit=False)
    async with Session() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def alice(db):
    return await create_user(db, User(username="alice", email="alice@example.com", full_name="Alice Able"))


@pytest_asyncio.fixture
async def bob(db):
    return await create_user(db, User(username="bob", email="bob@example.com", full_name="Bob Baker"))


@pytest.fixture
def ctx(db, alice):
    return CallerContext(db=db, user_id=alice.id, timezone="UTC")
