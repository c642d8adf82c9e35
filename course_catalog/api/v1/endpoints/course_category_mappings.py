from fastapi import APIRouter, Response, status

from course_catalog.core.deps import DBSessionDep
from course_catalog.schemas.course_category_mapping import (
    CourseCategoriesSet,
    MappingCreate,
    MappingOut,
    MappingUpdate,
)
from course_catalog.services.course_category_mapping_service import CourseCategoryMappingService

router = APIRouter()


@router.get("/course/{course_id}", response_model=list[MappingOut])
async def get_course_mappings(course_id: int, db: DBSessionDep):
    return await CourseCategoryMappingService(db).get_course_mappings(course_id)


@router.put("/course/{course_id}/categories", response_model=list[MappingOut])
async def set_course_categories(course_id: int, data: CourseCategoriesSet, db: DBSessionDep):
    """Replace all category links of a course"""
    return await CourseCategoryMappingService(db).set_course_categories(course_id, data)


@router.get("/{mapping_id}", response_model=MappingOut)
async def get_mapping(mapping_id: int, db: DBSessionDep):
    return await CourseCategoryMappingService(db).get_mapping(mapping_id)


@router.post("", response_model=MappingOut, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=MappingOut, status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_mapping(data: MappingCreate, db: DBSessionDep):
    return await CourseCategoryMappingService(db).create_mapping(data)


@router.patch("/{mapping_id}", response_model=MappingOut)
async def update_mapping(mapping_id: int, data: MappingUpdate, db: DBSessionDep):
    return await CourseCategoryMappingService(db).update_mapping(mapping_id, data)


@router.delete("/{mapping_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mapping(mapping_id: int, db: DBSessionDep):
    await CourseCategoryMappingService(db).delete_mapping(mapping_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
