from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, model_validator


class MappingCreate(BaseModel):
    course_id: int = Field(gt=0)
    category_id: int = Field(gt=0)
    is_primary: bool = False


class MappingUpdate(BaseModel):
    is_primary: bool | None = None


class CourseCategoriesSet(BaseModel):
    """Replaces every category link of a course"""
    category_ids: list[int] = Field(default_factory=list)
    primary_category_id: int | None = None

    @model_validator(mode='after')
    def check_primary_in_list(self):
        if self.primary_category_id is not None and self.primary_category_id not in self.category_ids:
            raise ValueError('primary_category_id must be one of category_ids')
        return self

    @property
    def unique_category_ids(self) -> list[int]:
        return list(dict.fromkeys(self.category_ids))


class MappingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    category_id: int
    is_primary: bool
    created_at: datetime
    updated_at: datetime
