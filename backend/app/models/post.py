"""
Blog Backend — Post SQLAlchemy Model
======================================

What:  ORM model representing the `posts` table.
Who:   Used by PostService for all CRUD operations.

Table Design Rationale:
    - author: FK to users.id; the Python attribute is named after the JSON
      field it is exposed as, the column is `author_id`
    - author_name: snapshot of the author's username at creation time. It is
      deliberately never refreshed.
    - image: public path (/uploads/<name>) or NULL; replacing the image
      leaves the old file in place
    - created_at DESC index: serves both listing queries (all posts and
      "my posts") newest-first
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.user import utcnow


class Post(Base):
    """
    A blog post.

    Lifecycle:
        Create (absent → present), Update (present → present, author only),
        Delete (present → absent, author only). No other states.
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    image: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
        default=None,
        comment="Public path of the attached image, e.g. /uploads/1700000000000-ab12cd34.png",
    )

    author: Mapped[uuid.UUID] = mapped_column(
        "author_id",
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    author_name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Author's username when the post was created",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.current_timestamp(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.current_timestamp(),
    )

    __table_args__ = (
        Index("idx_posts_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, author={self.author}, title='{self.title}')>"
