"""
Snippetbox — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (mocked DB, a real app on a
       throwaway SQLite database, HTTP clients with and without a login).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session:  Mock database session (service unit tests)
    ├── test_settings:    Settings pointing at a per-test SQLite file
    ├── app:              Application built by create_app, tables created
    ├── client:           HTTPX AsyncClient talking to `app` (cookie jar on)
    ├── registered_user:  A user row created through UserService
    └── auth_client:      `client` after a successful POST /user/login

Helpers:
    csrf_token_from(html) extracts the hidden csrf_token field of a page.
"""

import os
import re
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Keep the session sweeper and library loggers quiet during tests
os.environ.setdefault("LOG_LEVEL", "WARNING")

from snippetbox.config import Settings  # noqa: E402
from snippetbox.database import create_tables, dispose_engine  # noqa: E402
from snippetbox.main import create_app  # noqa: E402

CSRF_RX = re.compile(r'name="csrf_token" value="([^"]+)"')

USER_NAME = "Alice"
USER_EMAIL = "alice@example.com"
USER_PASSWORD = "pa55word!"


def csrf_token_from(html: str) -> str:
    match = CSRF_RX.search(html)
    assert match, "page has no csrf_token field"
    return match.group(1)


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    What:    A MagicMock that simulates AsyncSession behavior.
    Why:     Service error paths can be tested without a real database.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path):
    """
    Settings for an isolated application instance.

    - SQLite file under tmp_path (fresh database per test)
    - session cookie without the Secure flag (the test client talks plain http)
    - bcrypt at its minimum work factor to keep the suite fast
    """
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'snippetbox.db'}",
        session_cookie_secure=False,
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(test_settings):
    application = create_app(test_settings)
    await create_tables(application.state.engine)
    yield application
    await dispose_engine(application.state.engine)


@pytest_asyncio.fixture
async def client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Uses ASGITransport to route requests directly to the app; cookies set by
    responses are sent back on later requests, like a browser would.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def registered_user(app) -> int:
    async with app.state.session_factory() as db:
        user_id = await app.state.users.insert(db, USER_NAME, USER_EMAIL, USER_PASSWORD)
        await db.commit()
    return user_id


async def login(client: AsyncClient, email: str = USER_EMAIL, password: str = USER_PASSWORD):
    page = await client.get("/user/login")
    return await client.post(
        "/user/login",
        data={"email": email, "password": password, "csrf_token": csrf_token_from(page.text)},
    )


@pytest_asyncio.fixture
async def auth_client(client, registered_user):
    response = await login(client)
    assert response.status_code == 303
    return client
