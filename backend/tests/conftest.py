"""
ShareCase - Test Configuration and Fixtures
"""
import os
import io
from typing import AsyncGenerator, Callable, Dict
import pytest
import httpx
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from faker import Faker
from PIL import Image

# Set testing environment
os.environ['TESTING'] = 'true'
os.environ['ENVIRONMENT'] = 'test'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_sharecase.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'

from app.main import app
from app.core.database import Base, get_db, build_engine
from app.core.security import create_access_token
from app.models.user import User, UserRole
from app.models.project import Project
from app.services.asset_fetcher import RemoteAssetFetcher

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_sharecase.db'
test_engine = build_engine(TEST_DATABASE_URL)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


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
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable:
    """Factory for persisted users"""
    async def _make_user(role: UserRole = UserRole.STUDENT, **fields) -> User:
        user = User(
            name=fields.pop('name', fake.first_name()),
            email=fields.pop('email', fake.unique.email()),
            role=role,
            is_active=True,
            **fields
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_project(db_session: AsyncSession) -> Callable:
    """Factory for persisted projects (no point side effects)"""
    async def _make_project(owner: User, **fields) -> Project:
        project = Project(
            user_id=owner.id,
            title=fields.pop('title', fake.catch_phrase()),
            description=fields.pop('description', fake.text(max_nb_chars=120)),
            problem_statement=fields.pop('problem_statement', fake.sentence()),
            image_urls=fields.pop('image_urls', []),
            tags=fields.pop('tags', []),
            **fields
        )
        db_session.add(project)
        await db_session.commit()
        await db_session.refresh(project)
        return project
    return _make_project


@pytest.fixture
async def test_user(make_user) -> User:
    """Create a test user"""
    return await make_user()


@pytest.fixture
async def other_user(make_user) -> User:
    """A second regular user"""
    return await make_user()


@pytest.fixture
async def admin_user(make_user) -> User:
    """Create an admin test user"""
    return await make_user(role=UserRole.ADMIN)


def headers_for(user: User) -> Dict[str, str]:
    token_data = {
        'sub': str(user.id),
        'email': user.email,
        'role': user.role.value
    }
    return {'Authorization': f'Bearer {create_access_token(token_data)}'}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate authentication headers for test user"""
    return headers_for(test_user)


@pytest.fixture
def other_auth_headers(other_user: User) -> dict:
    return headers_for(other_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    """Generate authentication headers for admin user"""
    return headers_for(admin_user)


# ==================== Remote images ====================

def png_bytes(width: int = 40, height: int = 30, color=(20, 184, 166)) -> bytes:
    buf = io.BytesIO()
    Image.new('RGB', (width, height), color).save(buf, format='PNG')
    return buf.getvalue()


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    """Encode a solid-colour PNG"""
    return png_bytes


@pytest.fixture
def image_server() -> Dict[str, httpx.Response]:
    """
    URL -> canned response table served by `mock_fetcher`.
    Unknown URLs get a 404.
    """
    return {}


@pytest.fixture
def fetched_urls() -> list:
    return []


@pytest.fixture
def mock_fetcher(image_server, fetched_urls) -> RemoteAssetFetcher:
    """RemoteAssetFetcher backed by httpx.MockTransport"""
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        fetched_urls.append(url)
        response = image_server.get(url)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return httpx.Response(404)
        return response

    return RemoteAssetFetcher(timeout=5, transport=httpx.MockTransport(handler))


@pytest.fixture
def session_factory(db_session) -> async_sessionmaker:
    """Independent sessions on the test database (tables already created)"""
    return TestSessionLocal
