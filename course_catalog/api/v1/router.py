from fastapi import APIRouter

from course_catalog.api.v1.endpoints import categories, course_category_mappings

api_router = APIRouter()
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(course_category_mappings.router, prefix="/course-category-mappings", tags=["course-category-mappings"])
