"""
OpsLedger Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The environment is pointed at a throwaway SQLite database and storage
       directory BEFORE any `app` module is imported, because app.config
       reads the environment once at import time.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_tables:       create_all / drop_all around the test
    ├── db_session:      AsyncSession for service-level tests
    ├── test_client:     HTTPX AsyncClient bound to the ASGI app
    ├── admin_headers:   first registered account (becomes Admin)
    ├── guest_headers:   second registered account (Guest)
    ├── temp_storage:    temporary directory for file operations
    └── sample_*_bytes:  minimal JPEG / PNG payloads
"""

import os
import tempfile

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup (must run before any app import)
# ══════════════════════════════════════════════════════════════════════════

_TEST_DIR = tempfile.mkdtemp(prefix="opsledger_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "storage")
os.environ["ACCESS_TOKEN_SECRET"] = "test-access-secret"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret"
os.environ["RESET_TOKEN_SECRET"] = "test-reset-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["SMTP_HOST"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

import app.models  # noqa: E402,F401
from app.database import Base, async_session_factory, engine  # noqa: E402

PASSWORD = "Secret#1"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_tables():
    """Fresh schema per test; the engine is disposed so no pooled connection outlives its event loop."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_tables):
    """
    A real AsyncSession for calling services directly.

    Services only flush, so everything a test writes stays visible inside
    the session and is rolled back afterwards.
    """
    async with async_session_factory() as session:
        yield session
        await session.rollback()


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client & Accounts
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_tables):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def register(client: AsyncClient, email: str, first_name: str = "Alice", last_name: str = "Smith"):
    return await client.post(
        "/api/auth/register",
        data={
            "email": email,
            "first_name": first_name,
            "last_name": last_name,
            "password": PASSWORD,
        },
    )


def bearer(response) -> dict:
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


EMPLOYEE = {
    "first_name": "John",
    "last_name": "Doe",
    "department": "Development",
    "salary": "1000",
    "tech_stack": "Backend",
    "hiring_date": "2023-01-01",
}


async def create_employee(client: AsyncClient, headers: dict, **overrides) -> dict:
    response = await client.post("/api/employees", data={**EMPLOYEE, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def admin_headers(test_client):
    """The first account ever registered is the Admin."""
    response = await register(test_client, "admin@example.com", "Admin", "Person")
    assert response.status_code == 201, response.text
    test_client.cookies.clear()
    return bearer(response)


@pytest_asyncio.fixture
async def guest_headers(test_client, admin_headers):
    response = await register(test_client, "guest@example.com", "Guest", "Person")
    assert response.status_code == 201, response.text
    test_client.cookies.clear()
    return bearer(response)


# ══════════════════════════════════════════════════════════════════════════
# Files
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_jpeg_bytes():
    """Smallest JPEG-looking payload: SOI + JFIF APP0 header + EOI."""
    return (
        b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
        b"\xff\xd9"
    )


@pytest.fixture
def sample_png_bytes():
    """PNG signature followed by an IHDR chunk header."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 17
