"""
ProjectDesk - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator, Optional
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from faker import Faker

# Set testing environment
os.environ['TESTING'] = 'true'
os.environ['ENVIRONMENT'] = 'test'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['ANTHROPIC_API_KEY'] = 'test-api-key'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['STORAGE_MODE'] = 'local'
os.environ['LOCAL_STORAGE_DIR'] = tempfile.mkdtemp(prefix='projectdesk-test-')
os.environ['BCRYPT_ROUNDS'] = '4'

from projectdesk.main import app
from projectdesk.api.deps import get_claude_client, get_google_provider, get_storage
from projectdesk.core.database import Base, get_db
from projectdesk.core.security import get_password_hash, create_access_token
from projectdesk.models.user import User, UserRole
from projectdesk.services.wizard_sessions import WizardSessionRegistry
from projectdesk.utils.storage_client import StorageClient

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)

IMPROVED_MARKDOWN = """Sure! Here is the improved document.

## 1. Project Overview
- **Name:** Inventory Tracker
- **Objective:** Track stock across warehouses

## 2. Project Structure
| Layer | Technology |
|-------|------------|
| Frontend | React |
| Backend | FastAPI |
"""


class FakeClaudeClient:
    """Stands in for ClaudeClient; records prompts and returns canned content"""

    def __init__(self, content: str = IMPROVED_MARKDOWN, error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.call_count = 0
        self.last_prompt = None
        self.last_system = None

    async def generate(self, prompt, system_prompt=None, max_tokens=None, temperature=None):
        self.call_count += 1
        self.last_prompt = prompt
        self.last_system = system_prompt
        if self.error is not None:
            raise self.error
        return {
            "content": self.content,
            "model": "claude-test",
            "input_tokens": 120,
            "output_tokens": 480,
            "total_tokens": 600,
            "stop_reason": "end_turn",
            "id": "msg_test",
        }


class FakeGoogleProvider:
    """Accepts any token listed in `profiles`, rejects the rest"""

    def __init__(self, profiles: Optional[dict] = None):
        self.profiles = profiles or {}

    async def verify_id_token_async(self, token: str):
        return self.profiles.get(token)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def storage(tmp_path) -> StorageClient:
    return StorageClient(mode='local', local_dir=str(tmp_path / 'storage'))


@pytest.fixture
def fake_claude() -> FakeClaudeClient:
    return FakeClaudeClient()


@pytest.fixture
def claude_factory():
    """Builds FakeClaudeClient instances with custom content or errors"""
    return FakeClaudeClient


@pytest.fixture
def fake_google() -> FakeGoogleProvider:
    return FakeGoogleProvider()


@pytest.fixture
async def client(
    db_session: AsyncSession,
    storage: StorageClient,
    fake_claude: FakeClaudeClient,
    fake_google: FakeGoogleProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database, storage and AI overrides"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_claude_client] = lambda: fake_claude
    app.dependency_overrides[get_google_provider] = lambda: fake_google
    app.state.wizard_sessions = WizardSessionRegistry()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, role: UserRole, password: str) -> User:
    user = User(
        email=fake.unique.email().lower(),
        hashed_password=get_password_hash(password),
        name=fake.name(),
        phone_number='9876543210',
        role=role,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _auth_headers(user: User) -> dict:
    token_data = {
        'sub': str(user.id),
        'email': user.email,
        'role': user.role.value
    }
    token = create_access_token(token_data)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
async def client_user(db_session: AsyncSession) -> User:
    """Create a client test user"""
    return await _create_user(db_session, UserRole.CLIENT, 'clientpassword123')


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin test user"""
    return await _create_user(db_session, UserRole.ADMIN, 'adminpassword123')


@pytest.fixture
async def developer_user(db_session: AsyncSession) -> User:
    """Create a developer test user"""
    return await _create_user(db_session, UserRole.DEVELOPER, 'developerpassword123')


@pytest.fixture
def auth_headers(client_user: User) -> dict:
    """Authentication headers for the client user"""
    return _auth_headers(client_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    return _auth_headers(admin_user)


@pytest.fixture
def developer_auth_headers(developer_user: User) -> dict:
    return _auth_headers(developer_user)


@pytest.fixture
def project_details() -> dict:
    """Step 1 values that pass validation"""
    return {
        "projectName": "Inventory Tracker Platform",
        "projectOverview": (
            "A web platform that lets warehouse staff record incoming and outgoing stock, "
            "see live inventory levels per location and export monthly reports for finance."
        ),
    }
