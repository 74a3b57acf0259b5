"""Shared test configuration; must be loaded before slotly modules."""

import os
import tempfile

# Override database URL before any slotly modules are imported. A file
# database (rather than :memory:) gives concurrent sessions their own
# connections, which the webhook fan-out relies on.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="slotly-tests-")
os.environ["SLOTLY_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/test.db"

import pytest
from slotly.database import engine, Base
from slotly.models import booking, event_type, webhook  # noqa: F401


@pytest.fixture(autouse=True)
async def _reset_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled aiosqlite connections must not outlive the test's event loop.
    await engine.dispose()
