"""Shared test fixtures for all tests."""
import os
import tempfile
from pathlib import Path

# Settings are read at import time, so the environment must be in place first
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="shopfront-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT / 'unused.db'}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CREATE_TABLES"] = "false"
os.environ["UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")
os.environ["LOG_DIR"] = str(_TEST_ROOT / "logs")
os.environ.pop("BOOTSTRAP_ADMIN_PASSWORD", None)

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from app.core.authorization import CallerContext, UserTier
from app.core.database import Base, get_db
from app.core.security import create_access_token, get_password_hash
from app.main import app
from app.models import User, Category, Product, WishlistItem  # noqa: F401

TEST_PASSWORD = "secret123"


# =============================================================================
# Service-level fixtures (async, in-memory database)
# =============================================================================


@pytest_asyncio.fixture
async def async_session():
    """Create an in-memory async SQLite session for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_maker() as session:
        yield session

    await engine.dispose()


async def add_user(session: AsyncSession, username: str, tier: UserTier = UserTier.USER) -> User:
    """Insert an account directly, bypassing registration."""
    user = User(
        username=username,
        name=username.title(),
        email=f"{username}@example.com",
        password_hash="not-a-real-hash",
        tier=tier.value,
        is_active=True,
    )
    session.add(user)
    await session.commit()
    return user


def caller_for(user: User) -> CallerContext:
    return CallerContext.from_user(user)


# =============================================================================
# API fixtures (TestClient against a per-test SQLite file)
# =============================================================================


@pytest.fixture(scope="function")
def test_db(tmp_path):
    """Create a fresh SQLite database file and a sync session for seeding and inspection."""
    db_file = tmp_path / "test.db"
    engine = create_engine(f"sqlite:///{db_file}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    db = TestingSessionLocal()
    db.info["db_file"] = db_file
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture(scope="function")
def client(test_db):
    """Create a test client whose requests use the test database."""
    async_engine = create_async_engine(
        f"sqlite+aiosqlite:///{test_db.info['db_file']}",
        poolclass=NullPool,
    )
    session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def seed_user(db, username: str, tier: UserTier = UserTier.USER) -> User:
    """Insert an account with ``TEST_PASSWORD`` through the sync session."""
    user = User(
        username=username,
        name=username.title(),
        email=f"{username}@example.com",
        password_hash=get_password_hash(TEST_PASSWORD),
        tier=tier.value,
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


@pytest.fixture
def regular_user(test_db):
    return seed_user(test_db, "alice")


@pytest.fixture
def other_user(test_db):
    return seed_user(test_db, "bob")


@pytest.fixture
def admin_user(test_db):
    return seed_user(test_db, "moderator", UserTier.ADMIN)


@pytest.fixture
def super_admin_user(test_db):
    return seed_user(test_db, "root_admin", UserTier.SUPER_ADMIN)


@pytest.fixture
def upload_dir():
    from app.core.config import settings
    path = Path(settings.upload_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path
