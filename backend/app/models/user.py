"""
Blog Backend — User SQLAlchemy Model
======================================

What:  ORM model representing the `users` table.
Who:   Used by UserService for registration/login and as the FK target of posts.

Table Design Rationale:
    - UUID primary key: non-sequential, assigned by the application
    - username / email: each has its own UNIQUE index; the service pre-checks
      both to answer with a clean conflict, the index catches races
    - password_hash: bcrypt hash string (never the plain password)
    - created_at / updated_at: UTC, timezone-aware
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered author.

    Lifecycle:
        Created at registration. There is no endpoint that mutates or
        deletes a user.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier",
    )

    username: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
        comment="Unique display name, copied onto posts as author_name",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Unique login identifier",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the password",
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

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
