from __future__ import annotations
from datetime import datetime
from sqlalchemy import DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from course_catalog.db.base import Base


class CourseCategoryMapping(Base):
    __tablename__ = "course_category_mappings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), index=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("course_categories.id"), index=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, comment="Whether this is the primary category for the course")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("course_id", "category_id", name="uq_course_category_mappings_course_category"),
    )
