import pytest
from typing import AsyncGenerator, Callable, Generator
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from unittest.mock import MagicMock, AsyncMock

# Mock Redis BEFORE importing main.app so the idempotency store uses the mock
import redis.asyncio as redis
mock_redis = AsyncMock()
redis.from_url = MagicMock(return_value=mock_redis)
mock_redis.get.return_value = None
mock_redis.setex.return_value = True

from main import app
from partner_portal.core.config import settings
from partner_portal.core.database import build_engine, build_sessionmaker, drop_db, get_db, init_db
from partner_portal.core.deps import get_docuseal_client
from partner_portal.core.security import create_access_token
from partner_portal.integrations.docuseal import DocuSealClient

# Use an in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool, echo=False)
TestingSessionLocal = build_sessionmaker(engine)


@pytest.fixture(autouse=True)
async def setup_db():
    await init_db(engine)
    yield
    await drop_db(engine)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """A session for service-level tests that bypass HTTP."""
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    from httpx import ASGITransport
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def auth_token(client: AsyncClient) -> str:
    # The static token is the admin credential for internal tooling
    return settings.API_SECRET_TOKEN


@pytest.fixture
def admin_headers(auth_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def make_headers() -> Callable[..., dict[str, str]]:
    """Build Authorization headers for a JWT with the given role and partner."""
    def _make(role: str = "partner", partner_id: int | None = None, sub: str = "user-1") -> dict[str, str]:
        claims = {"sub": sub, "role": role, "email": f"{sub}@example.com"}
        if partner_id is not None:
            claims["partner_id"] = partner_id
        return {"Authorization": f"Bearer {create_access_token(claims)}"}
    return _make


@pytest.fixture
def docuseal() -> Generator[MagicMock, None, None]:
    """DocuSeal double wired into the app; every template and submission succeeds."""
    fake = MagicMock(spec=DocuSealClient)
    counter = {"n": 0}

    async def create_html_template(name, html, folder_name):
        counter["n"] += 1
        return {"id": 1000 + counter["n"], "slug": f"tpl-{counter['n']}", "name": name}

    async def create_submission(template_id, submitters, send_email=True, metadata=None):
        counter["n"] += 1
        return [{"id": 50 + i, "submission_id": 9000 + counter["n"], "role": s["role"]} for i, s in enumerate(submitters)]

    fake.create_html_template = AsyncMock(side_effect=create_html_template)
    fake.create_submission = AsyncMock(side_effect=create_submission)

    app.dependency_overrides[get_docuseal_client] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_docuseal_client, None)
