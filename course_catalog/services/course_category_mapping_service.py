from __future__ import annotations
import logging
from typing import Any, List, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from course_catalog.core.exceptions import NotFoundError, ValidationError
from course_catalog.models import Course, CourseCategoryMapping
from course_catalog.repositories.course_category_mapping_repository import CourseCategoryMappingRepository
from course_catalog.repositories.course_category_repository import CourseCategoryRepository
from course_catalog.repositories.course_repository import CourseRepository
from course_catalog.schemas.course_category_mapping import CourseCategoriesSet, MappingCreate, MappingUpdate
from course_catalog.services.course_category_service import parse_input

logger = logging.getLogger(__name__)


class CourseCategoryMappingService:
    """Links courses to categories and keeps each category's course_count in step"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.mapping_repository = CourseCategoryMappingRepository(db)
        self.category_repository = CourseCategoryRepository(db)
        self.course_repository = CourseRepository(db)

    async def _require_course(self, course_id: int) -> Course:
        course = await self.course_repository.get(course_id)
        if not course:
            raise NotFoundError(f"Course {course_id} not found")
        return course

    async def _require_category(self, category_id: int) -> None:
        if not await self.category_repository.get(category_id):
            raise NotFoundError(f"Category {category_id} not found")

    async def _require_mapping(self, mapping_id: int) -> CourseCategoryMapping:
        mapping = await self.mapping_repository.get(mapping_id)
        if not mapping:
            raise NotFoundError(f"Mapping {mapping_id} not found")
        return mapping

    async def create_mapping(self, data: MappingCreate | Mapping[str, Any]) -> CourseCategoryMapping:
        payload = parse_input(MappingCreate, data)
        await self._require_course(payload.course_id)
        await self._require_category(payload.category_id)

        if await self.mapping_repository.get_for(payload.course_id, payload.category_id):
            raise ValidationError("This course is already mapped to this category", code="duplicate-mapping")

        if payload.is_primary:
            await self.mapping_repository.clear_primary(payload.course_id)

        mapping = await self.mapping_repository.add(CourseCategoryMapping(**payload.model_dump()))
        await self.category_repository.adjust_course_count(payload.category_id, 1)
        await self.db.commit()
        await self.db.refresh(mapping)

        logger.info("Mapped course %s to category %s", mapping.course_id, mapping.category_id)
        return mapping

    async def get_mapping(self, mapping_id: int) -> CourseCategoryMapping:
        return await self._require_mapping(mapping_id)

    async def get_course_mappings(self, course_id: int) -> List[CourseCategoryMapping]:
        """The course's mappings, primary first"""
        return await self.mapping_repository.list_by_course(course_id)

    async def update_mapping(self, mapping_id: int, data: MappingUpdate | Mapping[str, Any]) -> CourseCategoryMapping:
        payload = parse_input(MappingUpdate, data)
        mapping = await self._require_mapping(mapping_id)

        if payload.is_primary:
            await self.mapping_repository.clear_primary(mapping.course_id, exclude_id=mapping.id)
        if payload.is_primary is not None:
            mapping.is_primary = payload.is_primary

        await self.db.flush()
        await self.db.commit()
        await self.db.refresh(mapping)
        return mapping

    async def delete_mapping(self, mapping_id: int) -> None:
        mapping = await self._require_mapping(mapping_id)
        category_id = mapping.category_id
        course_id = mapping.course_id

        await self.mapping_repository.delete(mapping)
        await self.category_repository.adjust_course_count(category_id, -1)
        await self.db.commit()
        logger.info("Unmapped course %s from category %s", course_id, category_id)

    async def set_course_categories(
        self,
        course_id: int,
        data: CourseCategoriesSet | Mapping[str, Any],
    ) -> List[CourseCategoryMapping]:
        """
        Replace every category link of a course with the given set.

        Links no longer listed are removed and new ones added, adjusting
        course_count on each affected category; the primary flag ends up
        on primary_category_id when one is given.
        """
        payload = parse_input(CourseCategoriesSet, data)
        category_ids = payload.unique_category_ids
        await self._require_course(course_id)
        for category_id in category_ids:
            await self._require_category(category_id)

        existing = {mapping.category_id: mapping for mapping in await self.mapping_repository.list_by_course(course_id)}

        for category_id, mapping in existing.items():
            if category_id not in category_ids:
                await self.mapping_repository.delete(mapping)
                await self.category_repository.adjust_course_count(category_id, -1)

        for category_id in category_ids:
            if category_id not in existing:
                existing[category_id] = await self.mapping_repository.add(
                    CourseCategoryMapping(course_id=course_id, category_id=category_id, is_primary=False)
                )
                await self.category_repository.adjust_course_count(category_id, 1)

        if payload.primary_category_id is not None:
            for category_id in category_ids:
                existing[category_id].is_primary = category_id == payload.primary_category_id

        await self.db.flush()
        await self.db.commit()
        logger.info("Set categories of course %s to %s", course_id, category_ids)
        return await self.mapping_repository.list_by_course(course_id)
