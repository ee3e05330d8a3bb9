"""Pytest fixtures for core query tests."""

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy.dialects import postgresql


@pytest_asyncio.fixture
async def db_conn():
    """
    Provide a DB connection that rolls back after each test.

    All changes made during the test are visible within the test,
    but rolled back afterward so DB stays clean. Missing tables and the
    attendee_status type are created inside the same transaction.
    """
    load_dotenv(".env.local")

    from core.database import close_engine, get_engine, is_configured
    from core.tables import metadata

    if not is_configured():
        pytest.skip("DATABASE_URL not set")

    engine = get_engine()

    async with engine.connect() as conn:
        txn = await conn.begin()
        try:
            await conn.run_sync(
                lambda sync_conn: postgresql.ENUM(
                    "going", "interested", name="attendee_status"
                ).create(sync_conn, checkfirst=True)
            )
            await conn.run_sync(metadata.create_all)
            yield conn
        finally:
            await txn.rollback()

    await close_engine()
