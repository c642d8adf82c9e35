from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class CourseFilters(BaseModel):
    """Pass-through filters for a category's course listing; None means no constraint"""
    is_published: bool | None = None
    limit: int | None = Field(default=None, ge=1)
    offset: int | None = Field(default=None, ge=0)


class CourseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    is_published: bool
    rating: float
    created_at: datetime
    updated_at: datetime
