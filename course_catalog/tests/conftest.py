"""
Pytest configuration and fixtures for catalog tests
"""
import pytest
from typing import AsyncGenerator, Awaitable, Callable
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from course_catalog.main import create_app
from course_catalog.db.base import Base
from course_catalog.models import Course, CourseCategoryMapping
from course_catalog.services.course_category_service import CourseCategoryService


# Test database URL - use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session with in-memory SQLite.
    Each test gets a fresh database.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_client(test_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with dependency override for database.
    """
    app = create_app()

    async def override_get_db():
        yield test_db

    from course_catalog.db.session import get_db
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def service(test_db: AsyncSession) -> CourseCategoryService:
    return CourseCategoryService(test_db, delete_policy="detach")


@pytest.fixture
def make_course(test_db: AsyncSession) -> Callable[..., Awaitable[Course]]:
    """Insert a course row directly; courses are owned outside this service."""
    async def _make_course(title: str, is_published: bool = True, rating: float = 0) -> Course:
        course = Course(title=title, is_published=is_published, rating=rating)
        test_db.add(course)
        await test_db.commit()
        await test_db.refresh(course)
        return course
    return _make_course


@pytest.fixture
def link_course(test_db: AsyncSession) -> Callable[..., Awaitable[CourseCategoryMapping]]:
    """Link a course to a category without touching course_count."""
    async def _link_course(course_id: int, category_id: int, is_primary: bool = False) -> CourseCategoryMapping:
        mapping = CourseCategoryMapping(course_id=course_id, category_id=category_id, is_primary=is_primary)
        test_db.add(mapping)
        await test_db.commit()
        await test_db.refresh(mapping)
        return mapping
    return _link_course
