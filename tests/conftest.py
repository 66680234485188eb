"""
Test infrastructure for the Blog API.

Strategy
--------
- SQLite in-memory via aiosqlite; no Postgres needed.
- StaticPool makes every session share the one in-memory connection (an
  in-memory SQLite database lives and dies with its connection).
- ``get_db`` is overridden so requests use the test session factory.
- Tables are created and the USER / ADMIN roles seeded before each test,
  and everything is dropped after.
- Redis is disabled by setting ``cache._redis = None``; the CacheManager
  treats that as a permanent miss, so the database path is always taken.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from blog_api.cache import cache
from blog_api.database import Base, get_db
from blog_api.main import app
from blog_api.middleware import install_query_counter
from blog_api.models import Role, RoleName, User
from blog_api.security import encode_token, hash_password

# ---------------------------------------------------------------------------
# Test database engine
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def auth_headers(email: str, password: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {encode_token(email, password)}"}


async def create_user(
    db: AsyncSession,
    email: str,
    password: str = "secret",
    first_name: str = "Test",
    last_name: str = "User",
    age: int | None = 30,
    roles: tuple[RoleName, ...] = (RoleName.USER,),
) -> User:
    """Insert a user directly (bypassing registration) and flush it."""
    role_rows = (await db.execute(select(Role).where(Role.name.in_(roles)))).scalars().all()
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        age=age,
        password=hash_password(password),
    )
    user.roles.extend(role_rows)
    db.add(user)
    await db.flush()
    return user


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_session_test() as session:
        session.add_all([Role(name=RoleName.USER), Role(name=RoleName.ADMIN)])
        await session.commit()
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live session for tests that call services directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def admin_headers() -> dict[str, str]:
    """Committed ADMIN user, returned as ready-to-send auth headers."""
    async with async_session_test() as session:
        await create_user(
            session, "admin@example.com", "adminpass",
            first_name="Admin", last_name="Admin",
            roles=(RoleName.USER, RoleName.ADMIN),
        )
        await session.commit()
    return auth_headers("admin@example.com", "adminpass")


@pytest.fixture
def register_payload() -> dict:
    return {
        "firstName": "Ivan",
        "lastName": "Petrov",
        "email": "ivan@example.com",
        "age": 25,
        "password": "qwerty",
    }
