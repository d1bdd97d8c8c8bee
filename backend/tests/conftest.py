"""Test fixtures for the backend."""
import os
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_backend.db")
os.environ.setdefault("LIMITER_ENABLED", "false")

from followups import models  # noqa: E402
from followups.auth import AuthService  # noqa: E402
from followups.background import BackgroundTaskGroup  # noqa: E402
from followups.database import AsyncSessionLocal, engine  # noqa: E402
from followups.main import app  # noqa: E402


test_db_path = Path("test_backend.db")


class RecordingMailer:
    """Mailer double that keeps every message instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, dict]] = []

    async def send(self, recipient: str, template_name: str, data: dict) -> None:
        self.sent.append((recipient, template_name, data))


@pytest.fixture(scope="session", autouse=True)
def remove_database_file():
    yield
    if test_db_path.exists():
        test_db_path.unlink()


@pytest_asyncio.fixture
async def database():
    """Fresh schema for each test; pooled connections never outlive its loop."""

    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def background() -> BackgroundTaskGroup:
    return BackgroundTaskGroup(limit=10)


@pytest.fixture
def auth_service(session, mailer, background) -> AuthService:
    return AuthService(session, mailer, background)


@pytest_asyncio.fixture
async def client(database, mailer, background) -> AsyncClient:
    """Provide an HTTP client for integration tests."""

    app.state.mailer = mailer
    app.state.background = background
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
