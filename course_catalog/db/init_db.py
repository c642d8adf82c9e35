"""
Database initialization - creates all tables and indexes
All schema is defined in the SQLAlchemy models in course_catalog/models/,
including the partial unique index that guards live category slugs.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from course_catalog.db.base import Base

# Import all models to ensure they are registered with Base.metadata
from course_catalog.models import (  # noqa: F401
    Course,
    CourseCategory,
    CourseCategoryMapping,
)

logger = logging.getLogger(__name__)


async def init_database(engine: AsyncEngine) -> None:
    """
    Create all tables and indexes from the models.

    Called on application startup. Connection failures are logged and
    swallowed so the app can still start and report them on requests.
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialization completed successfully")
    except OSError:
        logger.exception(
            "Cannot connect to the database; check DATABASE_URL and that the server is running"
        )
    except SQLAlchemyError:
        logger.exception("Error during database initialization")
