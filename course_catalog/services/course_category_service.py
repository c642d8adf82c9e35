from __future__ import annotations
import logging
from collections import defaultdict
from typing import Any, List, Mapping, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from course_catalog.core.config import settings
from course_catalog.core.exceptions import CycleError, NotFoundError, ValidationError
from course_catalog.models import Course, CourseCategory
from course_catalog.models.course_category import SLUG_INDEX_NAME
from course_catalog.repositories.course_category_mapping_repository import CourseCategoryMappingRepository
from course_catalog.repositories.course_category_repository import CourseCategoryRepository
from course_catalog.repositories.course_repository import CourseRepository
from course_catalog.schemas.course import CourseFilters
from course_catalog.schemas.course_category import (
    CategoryCreate,
    CategoryFilters,
    CategoryTreeNode,
    CategoryUpdate,
)
from course_catalog.services.slug import candidate_prefix, slugify, unique_slug

logger = logging.getLogger(__name__)

DUPLICATE_SLUG = "duplicate-slug"
TOO_DEEP = "too-deep"

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def parse_input(schema: type[SchemaT], data: SchemaT | Mapping[str, Any] | None) -> SchemaT:
    """Accept a schema instance or a plain mapping; bad input becomes a ValidationError"""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data or {})
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        message = f"{field}: {error['msg']}" if field else error["msg"]
        raise ValidationError(message) from e


def is_slug_conflict(error: IntegrityError) -> bool:
    """
    True only for a violation of the live-slug unique index. PostgreSQL
    names the index; SQLite names the indexed column.
    """
    text = str(error.orig if error.orig is not None else error).lower()
    return SLUG_INDEX_NAME in text or "unique constraint failed: course_categories.slug" in text


def subtree_height(parents: Mapping[int, int | None], root_id: int) -> int:
    """Number of levels in root_id's subtree, root_id itself included"""
    children: dict[int, list[int]] = defaultdict(list)
    for category_id, parent_id in parents.items():
        if parent_id is not None:
            children[parent_id].append(category_id)

    height = 0
    seen = {root_id}
    level = [root_id]
    while level:
        height += 1
        next_level = []
        for category_id in level:
            for child_id in children.get(category_id, ()):
                if child_id not in seen:
                    seen.add(child_id)
                    next_level.append(child_id)
        level = next_level
    return height


class CourseCategoryService:
    """
    Category hierarchy engine.

    Keeps the parent graph of live categories a forest and live slugs
    unique, rebuilds the tree on read, and lists the courses linked to a
    category. Each write runs its validation reads and the write itself in
    the session's current transaction and commits once.
    """

    def __init__(self, db: AsyncSession, delete_policy: str | None = None, max_depth: int | None = None):
        self.db = db
        self.category_repository = CourseCategoryRepository(db)
        self.course_repository = CourseRepository(db)
        self.mapping_repository = CourseCategoryMappingRepository(db)
        self.delete_policy = delete_policy or settings.CATEGORY_DELETE_POLICY
        self.max_depth = max_depth or settings.CATEGORY_MAX_DEPTH

    async def _get_live(self, category_id: int) -> CourseCategory:
        category = await self.category_repository.get(category_id)
        if not category:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    async def _derive_slug(self, name: str, exclude_id: int | None = None) -> str:
        base = slugify(name)
        taken = await self.category_repository.slugs_with_prefix(candidate_prefix(base), exclude_id=exclude_id)
        return unique_slug(base, taken)

    async def _ensure_slug_free(self, slug: str, exclude_id: int | None = None) -> None:
        if await self.category_repository.slug_taken(slug, exclude_id=exclude_id):
            raise ValidationError(f"Slug '{slug}' is already in use", code=DUPLICATE_SLUG)

    async def _check_parent(self, category_id: int | None, parent_id: int) -> None:
        """
        Make sure parent_id is a live category that is not category_id
        itself or one of its descendants, and that hanging category_id's
        subtree below it stays within max_depth. category_id is None on create.
        """
        if category_id is not None and parent_id == category_id:
            raise CycleError("A category cannot be its own parent")

        parents = await self.category_repository.parent_map()
        if parent_id not in parents:
            raise NotFoundError(f"Parent category {parent_id} not found")

        # Walk up from the proposed parent, counting its level; seen bounds
        # the walk even if the stored graph is already corrupt.
        seen: set[int] = set()
        parent_depth = 0
        current: int | None = parent_id
        while current in parents and current not in seen:
            if current == category_id:
                raise CycleError(
                    f"Category {parent_id} is a descendant of category {category_id}; "
                    "moving it there would create a cycle"
                )
            seen.add(current)
            parent_depth += 1
            current = parents[current]

        height = 1 if category_id is None else subtree_height(parents, category_id)
        if parent_depth + height > self.max_depth:
            raise ValidationError(
                f"Category tree would be {parent_depth + height} levels deep; "
                f"at most {self.max_depth} are allowed",
                code=TOO_DEEP,
            )

    async def _save(self, category: CourseCategory) -> None:
        """Flush and commit, turning a store-level slug collision into the usual ValidationError"""
        slug = category.slug
        try:
            await self.category_repository.add(category)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if is_slug_conflict(e):
                logger.warning("Store rejected duplicate category slug %r", slug)
                raise ValidationError(f"Slug '{slug}' is already in use", code=DUPLICATE_SLUG) from e
            raise

    async def create(self, data: CategoryCreate | Mapping[str, Any]) -> CourseCategory:
        payload = parse_input(CategoryCreate, data)

        if payload.parent_category_id is not None:
            await self._check_parent(None, payload.parent_category_id)

        values = payload.model_dump()
        if payload.slug is not None:
            await self._ensure_slug_free(payload.slug)
        else:
            values["slug"] = await self._derive_slug(payload.name)

        category = CourseCategory(**values)
        await self._save(category)
        await self.db.refresh(category)

        logger.info(
            "Created category %s (slug=%s, parent=%s)",
            category.id, category.slug, category.parent_category_id,
        )
        return category

    async def get_by_id(self, category_id: int) -> CourseCategory:
        return await self._get_live(category_id)

    async def get_by_slug(self, slug: str) -> CourseCategory:
        category = await self.category_repository.get_by_slug(slug)
        if not category:
            raise NotFoundError(f"Category with slug '{slug}' not found")
        return category

    async def list(self, filters: CategoryFilters | Mapping[str, Any] | None = None) -> List[CourseCategory]:
        options = parse_input(CategoryFilters, filters)
        return await self.category_repository.list(
            is_active=options.is_active,
            is_featured=options.is_featured,
            parent_category_id=options.parent_category_id,
            filter_parent=options.filters_by_parent,
        )

    async def build_hierarchy(self) -> List[CategoryTreeNode]:
        """
        Rebuild the category forest from one bulk read.

        Categories whose parent is not among the live ones (deleted or
        missing) become roots. If the stored graph holds a cycle, the
        first unreached member by display order is promoted to a root, so
        every live category appears exactly once and the walk ends.
        """
        categories = await self.category_repository.list_live()
        position = {category.id: index for index, category in enumerate(categories)}
        nodes = {category.id: CategoryTreeNode.model_validate(category) for category in categories}

        children_by_parent: dict[int, list[int]] = defaultdict(list)
        root_ids: list[int] = []
        for category in categories:
            parent_id = category.parent_category_id
            if parent_id is None:
                root_ids.append(category.id)
            elif parent_id not in nodes:
                logger.warning(
                    "Category %s points at missing parent %s; listing it as a root",
                    category.id, parent_id,
                )
                root_ids.append(category.id)
            else:
                children_by_parent[parent_id].append(category.id)

        placed: set[int] = set()

        def attach(root_id: int) -> None:
            placed.add(root_id)
            stack = [root_id]
            while stack:
                current = stack.pop()
                for child_id in children_by_parent.get(current, ()):
                    if child_id in placed:
                        continue
                    placed.add(child_id)
                    nodes[current].children.append(nodes[child_id])
                    stack.append(child_id)

        for root_id in root_ids:
            attach(root_id)

        for category in categories:
            if category.id not in placed:
                logger.warning("Category %s is part of a parent cycle; listing it as a root", category.id)
                root_ids.append(category.id)
                attach(category.id)

        root_ids.sort(key=position.__getitem__)
        return [nodes[root_id] for root_id in root_ids]

    async def update(self, category_id: int, data: CategoryUpdate | Mapping[str, Any]) -> CourseCategory:
        payload = parse_input(CategoryUpdate, data)
        changes = payload.model_dump(exclude_unset=True)
        category = await self._get_live(category_id)

        if "parent_category_id" in changes:
            new_parent_id = changes["parent_category_id"]
            if new_parent_id == category.id:
                raise CycleError("A category cannot be its own parent")
            if new_parent_id is not None and new_parent_id != category.parent_category_id:
                await self._check_parent(category.id, new_parent_id)

        if "slug" in changes:
            await self._ensure_slug_free(changes["slug"], exclude_id=category.id)
        elif "name" in changes and changes["name"] != category.name:
            changes["slug"] = await self._derive_slug(changes["name"], exclude_id=category.id)

        for key, value in changes.items():
            setattr(category, key, value)

        await self._save(category)
        await self.db.refresh(category)

        logger.info("Updated category %s: %s", category.id, ", ".join(sorted(changes)) or "no changes")
        return category

    async def delete(self, category_id: int) -> None:
        """
        Soft-delete a category. Under the "detach" policy children and
        course links are left alone; "restrict" refuses while either exists.
        """
        category = await self._get_live(category_id)

        if self.delete_policy == "restrict":
            if await self.category_repository.has_live_children(category.id):
                raise ValidationError("Cannot delete category with child categories", code="has-children")
            if await self.mapping_repository.exists_for_category(category.id):
                raise ValidationError("Cannot delete category that is used by courses", code="has-courses")

        await self.category_repository.soft_delete(category)
        await self.db.commit()
        logger.info("Deleted category %s (slug=%s)", category.id, category.slug)

    async def get_category_courses(
        self,
        category_id: int,
        filters: CourseFilters | Mapping[str, Any] | None = None,
    ) -> List[Course]:
        """Courses linked directly to the category; descendants are not included"""
        options = parse_input(CourseFilters, filters)
        await self._get_live(category_id)
        return await self.course_repository.list_by_category(
            category_id,
            is_published=options.is_published,
            limit=options.limit,
            offset=options.offset,
        )
