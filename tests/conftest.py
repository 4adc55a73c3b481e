"""
Pytest fixtures for Luna tests.
"""

import os

# No real LLM calls from the test suite
os.environ["OPENAI_API_KEY"] = ""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from luna.ai.interpreter import DreamInterpreter
from luna.api.deps import get_interpreter, get_store
from luna.api.middleware.rate_limit import FixedWindowRateLimiter, get_rate_limiter
from luna.config import Settings, get_settings
from luna.dreams.store import DreamStore
from luna.kernel.directory import UserDirectory
from luna.kernel.identity.jwt import IdentityClaim, JWTManager, TokenConfig, get_jwt_manager
from luna.kernel.models.user import UserRegistration
from luna.kernel.store import InMemoryStore

get_settings.cache_clear()

TEST_PASSWORD = "Str0ng!Pass"


@pytest.fixture
def token_config() -> TokenConfig:
    return TokenConfig(
        access_secret="test-access-secret-for-testing-only",
        refresh_secret="test-refresh-secret-for-testing-only",
    )


@pytest.fixture
def jwt_manager(token_config: TokenConfig) -> JWTManager:
    """Create a JWT manager for tests."""
    return JWTManager(token_config)


@pytest.fixture
def claim() -> IdentityClaim:
    return IdentityClaim(user_id="3f1c9a7e-0000-4000-8000-000000000001", email="dreamer@example.com")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def directory(store: InMemoryStore) -> UserDirectory:
    return UserDirectory(store)


@pytest.fixture
def dream_store(store: InMemoryStore) -> DreamStore:
    return DreamStore(store)


@pytest.fixture
def rate_limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter()


@pytest.fixture
def interpreter() -> DreamInterpreter:
    return DreamInterpreter(Settings(openai_api_key=""))


@pytest.fixture
def app(store, jwt_manager, rate_limiter, interpreter):
    """The application wired to per-test state."""
    from luna.main import app

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_jwt_manager] = lambda: jwt_manager
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_interpreter] = lambda: interpreter
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncClient:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def test_user(directory: UserDirectory):
    """Create a test user."""
    return await directory.create_user(
        UserRegistration(
            email="Dreamer@Example.com",
            password=TEST_PASSWORD,
            first_name="Test",
            last_name="Dreamer",
        )
    )


@pytest.fixture
def auth_headers(test_user, jwt_manager: JWTManager) -> dict:
    """Create authentication headers for a test user."""
    token = jwt_manager.issue_access_token(
        IdentityClaim(user_id=test_user.id, email=test_user.email)
    )
    return {"Authorization": f"Bearer {token}"}
