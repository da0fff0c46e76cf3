"""
PhotoMemo Backend: Post SQLAlchemy Model
========================================

What:  ORM model for the `posts` table (one memo with its attachments).
Who:   PostService for CRUD; Alembic for schema management.

Table Design:
    - user_id: owner; immutable after creation, the only account allowed to
      update or delete the row
    - number: per-owner sequence (max + 1 at insert time, not unique under
      concurrent inserts by the same owner)
    - file_url: JSON list of storage keys (or absolute URLs, as supplied)
    - image_url: legacy single attachment, still read when file_url is empty

    Index on created_at DESC serves the default "newest first" listing;
    index on user_id serves "my posts" and the per-owner max(number) lookup.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from photomemo.database import Base


class Post(Base):
    """A memo owned by one user, with zero or more attached images."""

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    number: Mapped[int] = mapped_column(Integer, nullable=False)

    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    file_url: Mapped[Optional[List[str]]] = mapped_column(
        JSON,
        nullable=True,
        default=list,
        comment="Ordered attachment keys or absolute URLs",
    )

    image_url: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
        default=None,
        comment="Legacy single attachment",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_posts_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, user_id={self.user_id}, number={self.number})>"
