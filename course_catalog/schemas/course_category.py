from datetime import datetime
from urllib.parse import urlparse
from pydantic import BaseModel, ConfigDict, Field, field_validator

SLUG_PATTERN = r"^[a-z0-9-]+$"
SLUG_MAX_LENGTH = 100
NAME_MAX_LENGTH = 100


def _validate_uri(v: str | None) -> str | None:
    if v is None:
        return v
    parsed = urlparse(v)
    if not parsed.scheme or not (parsed.netloc or parsed.path):
        raise ValueError('must be an absolute URI')
    return v


class CategoryFields(BaseModel):
    """Presentation and ordering fields shared by create and update payloads"""
    description: str | None = None
    icon_url: str | None = Field(default=None, max_length=512)
    image_url: str | None = Field(default=None, max_length=512)
    color: str | None = Field(default=None, max_length=20)
    meta_title: str | None = Field(default=None, max_length=255)
    meta_description: str | None = None
    meta_keywords: str | None = Field(default=None, max_length=255)

    @field_validator('icon_url', 'image_url')
    @classmethod
    def validate_uri(cls, v: str | None) -> str | None:
        return _validate_uri(v)


class CategoryCreate(CategoryFields):
    model_config = ConfigDict(extra='forbid')

    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    slug: str | None = Field(default=None, max_length=SLUG_MAX_LENGTH, pattern=SLUG_PATTERN)
    parent_category_id: int | None = Field(default=None, gt=0, description="ID of the parent category; omit for a root category")
    display_order: int = Field(default=0, ge=0)
    is_active: bool = True
    is_featured: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Trim whitespace; a blank name is not a name"""
        if not v or not v.strip():
            raise ValueError('Category name cannot be empty')
        return v.strip()


class CategoryUpdate(CategoryFields):
    """Partial update: only fields present in the payload are applied"""
    model_config = ConfigDict(extra='forbid')

    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    slug: str | None = Field(default=None, max_length=SLUG_MAX_LENGTH, pattern=SLUG_PATTERN)
    # Explicit null moves the category to the root level
    parent_category_id: int | None = Field(default=None, gt=0)
    display_order: int | None = Field(default=None, ge=0)
    is_active: bool | None = None
    is_featured: bool | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.strip():
            raise ValueError('Category name cannot be empty')
        return v.strip()

    @field_validator('name', 'slug', 'display_order', 'is_active', 'is_featured')
    @classmethod
    def reject_null(cls, v, info):
        # These columns are NOT NULL; leave them out of the payload instead
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        return v


class CategoryFilters(BaseModel):
    """
    Listing filters. A field left out imposes no constraint; note that
    parent_category_id=None given explicitly means "roots only", so the
    service checks model_fields_set rather than the value.
    """
    is_active: bool | None = None
    is_featured: bool | None = None
    parent_category_id: int | None = None

    @property
    def filters_by_parent(self) -> bool:
        return 'parent_category_id' in self.model_fields_set


class CategoryOut(CategoryFields):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    parent_category_id: int | None
    display_order: int
    is_active: bool
    is_featured: bool
    course_count: int
    created_at: datetime
    updated_at: datetime


class CategoryTreeNode(CategoryOut):
    children: list["CategoryTreeNode"] = Field(default_factory=list)


CategoryTreeNode.model_rebuild()
