from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from course_catalog.models import Course, CourseCategoryMapping


class CourseRepository:
    """Read side of courses: the association source for category listings"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, course_id: int) -> Course | None:
        res = await self.db.execute(
            select(Course).where(Course.id == course_id, Course.deleted_at.is_(None))
        )
        return res.scalar_one_or_none()

    async def list_by_category(
        self,
        category_id: int,
        is_published: bool | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Course]:
        """Courses linked directly to the category, best rated and newest first"""
        query = (
            select(Course)
            .join(CourseCategoryMapping, CourseCategoryMapping.course_id == Course.id)
            .where(
                CourseCategoryMapping.category_id == category_id,
                Course.deleted_at.is_(None),
            )
        )
        if is_published is not None:
            query = query.where(Course.is_published == is_published)
        query = query.order_by(Course.rating.desc(), Course.created_at.desc(), Course.id.desc())
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        res = await self.db.execute(query)
        return list(res.scalars().all())
