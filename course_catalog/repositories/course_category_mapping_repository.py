from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from course_catalog.models import Course, CourseCategoryMapping


class CourseCategoryMappingRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, mapping_id: int) -> CourseCategoryMapping | None:
        res = await self.db.execute(select(CourseCategoryMapping).where(CourseCategoryMapping.id == mapping_id))
        return res.scalar_one_or_none()

    async def get_for(self, course_id: int, category_id: int) -> CourseCategoryMapping | None:
        res = await self.db.execute(
            select(CourseCategoryMapping).where(
                CourseCategoryMapping.course_id == course_id,
                CourseCategoryMapping.category_id == category_id,
            )
        )
        return res.scalar_one_or_none()

    async def list_by_course(self, course_id: int) -> list[CourseCategoryMapping]:
        res = await self.db.execute(
            select(CourseCategoryMapping)
            .where(CourseCategoryMapping.course_id == course_id)
            .order_by(
                CourseCategoryMapping.is_primary.desc(),
                CourseCategoryMapping.created_at,
                CourseCategoryMapping.id,
            )
        )
        return list(res.scalars().all())

    async def exists_for_category(self, category_id: int) -> bool:
        """Whether any live course is linked to the category"""
        res = await self.db.execute(
            select(CourseCategoryMapping.id)
            .join(Course, Course.id == CourseCategoryMapping.course_id)
            .where(
                CourseCategoryMapping.category_id == category_id,
                Course.deleted_at.is_(None),
            )
            .limit(1)
        )
        return res.scalar_one_or_none() is not None

    async def add(self, mapping: CourseCategoryMapping) -> CourseCategoryMapping:
        self.db.add(mapping)
        await self.db.flush()
        return mapping

    async def delete(self, mapping: CourseCategoryMapping) -> None:
        await self.db.delete(mapping)
        await self.db.flush()

    async def clear_primary(self, course_id: int, exclude_id: int | None = None) -> None:
        """Unset the primary flag on the course's mappings, except exclude_id"""
        stmt = (
            update(CourseCategoryMapping)
            .where(
                CourseCategoryMapping.course_id == course_id,
                CourseCategoryMapping.is_primary.is_(True),
            )
            .values(is_primary=False)
            .execution_options(synchronize_session="fetch")
        )
        if exclude_id is not None:
            stmt = stmt.where(CourseCategoryMapping.id != exclude_id)
        await self.db.execute(stmt)
