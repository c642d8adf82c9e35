# Import all models to ensure they are registered with SQLAlchemy
from course_catalog.models.course_category import CourseCategory
from course_catalog.models.course import Course
from course_catalog.models.course_category_mapping import CourseCategoryMapping

__all__ = [
    "CourseCategory",
    "Course",
    "CourseCategoryMapping",
]
