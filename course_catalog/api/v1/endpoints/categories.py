from fastapi import APIRouter, HTTPException, Query, Response, status

from course_catalog.core.config import settings
from course_catalog.core.deps import DBSessionDep
from course_catalog.schemas.course import CourseFilters, CourseOut
from course_catalog.schemas.course_category import (
    CategoryCreate,
    CategoryFilters,
    CategoryOut,
    CategoryTreeNode,
    CategoryUpdate,
)
from course_catalog.services.course_category_service import CourseCategoryService

router = APIRouter()


def parse_parent_filter(raw: str | None) -> dict:
    """'null' selects root categories, an id selects its children, absence selects everything"""
    if raw is None:
        return {}
    if raw.strip().lower() == "null":
        return {"parent_category_id": None}
    try:
        parent_id = int(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="parent_category_id must be an integer or 'null'")
    return {"parent_category_id": parent_id}


@router.get("", response_model=list[CategoryOut])
@router.get("/", response_model=list[CategoryOut], include_in_schema=False)
async def list_categories(
    db: DBSessionDep,
    is_active: bool | None = Query(None),
    is_featured: bool | None = Query(None),
    parent_category_id: str | None = Query(None, description="Parent id, or 'null' for root categories only"),
):
    """List live categories; omitted filters impose no constraint"""
    filters = CategoryFilters(
        is_active=is_active,
        is_featured=is_featured,
        **parse_parent_filter(parent_category_id),
    )
    return await CourseCategoryService(db).list(filters)


@router.get("/hierarchy", response_model=list[CategoryTreeNode])
async def get_category_hierarchy(db: DBSessionDep):
    """All live categories as a forest of nested children"""
    return await CourseCategoryService(db).build_hierarchy()


@router.get("/slug/{slug}", response_model=CategoryOut)
async def get_category_by_slug(slug: str, db: DBSessionDep):
    return await CourseCategoryService(db).get_by_slug(slug)


@router.get("/{category_id}", response_model=CategoryOut)
async def get_category(category_id: int, db: DBSessionDep):
    return await CourseCategoryService(db).get_by_id(category_id)


@router.get("/{category_id}/courses", response_model=list[CourseOut])
async def get_category_courses(
    category_id: int,
    db: DBSessionDep,
    is_published: bool | None = Query(None),
    limit: int | None = Query(None, ge=1, le=settings.COURSE_PAGE_MAX_LIMIT),
    offset: int | None = Query(None, ge=0),
):
    """Courses linked directly to the category (sub-categories are not included)"""
    filters = CourseFilters(is_published=is_published, limit=limit, offset=offset)
    return await CourseCategoryService(db).get_category_courses(category_id, filters)


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=CategoryOut, status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_category(data: CategoryCreate, db: DBSessionDep):
    return await CourseCategoryService(db).create(data)


@router.patch("/{category_id}", response_model=CategoryOut)
async def update_category(category_id: int, data: CategoryUpdate, db: DBSessionDep):
    """Partial update; re-parenting is checked against cycles"""
    return await CourseCategoryService(db).update(category_id, data)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: int, db: DBSessionDep):
    """Soft-delete a category"""
    await CourseCategoryService(db).delete(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
