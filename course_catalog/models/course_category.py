from __future__ import annotations
from datetime import datetime
from sqlalchemy import String, DateTime, Boolean, ForeignKey, Integer, Text, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from course_catalog.db.base import Base


SLUG_INDEX_NAME = "uq_course_categories_slug_live"


class CourseCategory(Base):
    __tablename__ = "course_categories"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), index=True)
    slug: Mapped[str] = mapped_column(String(100), comment="URL-friendly version of name")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    parent_category_id: Mapped[int | None] = mapped_column(
        ForeignKey("course_categories.id"), nullable=True, index=True
    )
    icon_url: Mapped[str | None] = mapped_column(String(512), default=None)
    image_url: Mapped[str | None] = mapped_column(String(512), default=None)
    color: Mapped[str | None] = mapped_column(String(20), default=None)
    display_order: Mapped[int] = mapped_column(Integer, default=0, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    meta_title: Mapped[str | None] = mapped_column(String(255), default=None)
    meta_description: Mapped[str | None] = mapped_column(Text, default=None)
    meta_keywords: Mapped[str | None] = mapped_column(String(255), default=None)
    # Maintained by the course mapping service, read-only everywhere else
    course_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, default=None, index=True)

    __table_args__ = (
        # Slugs only need to be unique among live rows so a deleted slug can be reused
        Index(
            SLUG_INDEX_NAME,
            "slug",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
