from __future__ import annotations
from datetime import datetime
from typing import List
from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from course_catalog.models import CourseCategory


class CourseCategoryRepository:
    """Category store. Every read skips soft-deleted rows unless asked not to."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, category_id: int, include_deleted: bool = False) -> CourseCategory | None:
        query = select(CourseCategory).where(CourseCategory.id == category_id)
        if not include_deleted:
            query = query.where(CourseCategory.deleted_at.is_(None))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> CourseCategory | None:
        result = await self.db.execute(
            select(CourseCategory)
            .where(CourseCategory.slug == slug, CourseCategory.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def list(
        self,
        is_active: bool | None = None,
        is_featured: bool | None = None,
        parent_category_id: int | None = None,
        filter_parent: bool = False,
    ) -> List[CourseCategory]:
        """
        List live categories ordered by parent, display order, id.

        parent_category_id is only applied when filter_parent is set, so
        that None can mean "root categories" rather than "any parent".
        """
        query = select(CourseCategory).where(CourseCategory.deleted_at.is_(None))
        if is_active is not None:
            query = query.where(CourseCategory.is_active == is_active)
        if is_featured is not None:
            query = query.where(CourseCategory.is_featured == is_featured)
        if filter_parent:
            if parent_category_id is None:
                query = query.where(CourseCategory.parent_category_id.is_(None))
            else:
                query = query.where(CourseCategory.parent_category_id == parent_category_id)
        query = query.order_by(
            CourseCategory.parent_category_id.asc().nulls_first(),
            CourseCategory.display_order,
            CourseCategory.id,
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_live(self) -> List[CourseCategory]:
        """All live categories in sibling order, in one query"""
        result = await self.db.execute(
            select(CourseCategory)
            .where(CourseCategory.deleted_at.is_(None))
            .order_by(CourseCategory.display_order, CourseCategory.id)
        )
        return list(result.scalars().all())

    async def parent_map(self) -> dict[int, int | None]:
        """id -> parent_category_id for every live category"""
        result = await self.db.execute(
            select(CourseCategory.id, CourseCategory.parent_category_id)
            .where(CourseCategory.deleted_at.is_(None))
        )
        return {row.id: row.parent_category_id for row in result}

    async def slugs_with_prefix(self, prefix: str, exclude_id: int | None = None) -> set[str]:
        # Slugs are [a-z0-9-] only, so the prefix carries no LIKE wildcards
        query = select(CourseCategory.slug).where(
            CourseCategory.slug.like(f"{prefix}%"),
            CourseCategory.deleted_at.is_(None),
        )
        if exclude_id is not None:
            query = query.where(CourseCategory.id != exclude_id)
        result = await self.db.execute(query)
        return set(result.scalars().all())

    async def slug_taken(self, slug: str, exclude_id: int | None = None) -> bool:
        query = select(CourseCategory.id).where(
            CourseCategory.slug == slug,
            CourseCategory.deleted_at.is_(None),
        )
        if exclude_id is not None:
            query = query.where(CourseCategory.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def has_live_children(self, category_id: int) -> bool:
        result = await self.db.execute(
            select(CourseCategory.id)
            .where(
                CourseCategory.parent_category_id == category_id,
                CourseCategory.deleted_at.is_(None),
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def add(self, category: CourseCategory) -> CourseCategory:
        """Stage a new category and flush so the id and constraints are resolved"""
        self.db.add(category)
        await self.db.flush()
        return category

    async def soft_delete(self, category: CourseCategory) -> CourseCategory:
        category.deleted_at = datetime.utcnow()
        await self.db.flush()
        return category

    async def adjust_course_count(self, category_id: int, delta: int) -> None:
        """Shift the denormalized course count in SQL, never below zero"""
        new_count = CourseCategory.course_count + delta
        await self.db.execute(
            update(CourseCategory)
            .where(CourseCategory.id == category_id)
            .values(course_count=case((new_count < 0, 0), else_=new_count))
            .execution_options(synchronize_session=False)
        )
        # Bring any copy already loaded in this session up to date
        await self.db.execute(
            select(CourseCategory)
            .where(CourseCategory.id == category_id)
            .execution_options(populate_existing=True)
        )
