"""ORM model for the `people` table: the people quotes are attributed to."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from quotable.clock import utcnow
from quotable.database import Base


class Person(Base):
    __tablename__ = "people"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Free-form strings: historical dates are often partial ("c. 470 BC")
    birth_date: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    death_date: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Owner; NULL on legacy rows, which only admins may modify",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_people_slug", "slug"),
        Index("idx_people_created_by", "created_by"),
    )

    def __repr__(self) -> str:
        return f"<Person(id={self.id}, slug='{self.slug}')>"
