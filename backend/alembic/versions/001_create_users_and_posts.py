"""Create users and posts tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `users` table and the `posts` table that references it.
How:   Portable column types (Uuid, DateTime with timezone) so the same
       migration runs on PostgreSQL and SQLite. UUIDs are assigned by the
       application, so there is no server-side UUID default.

Rollback: downgrade() drops both tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False, comment="Unique identifier"),
        sa.Column(
            "username",
            sa.String(50),
            nullable=False,
            comment="Unique display name, copied onto posts as author_name",
        ),
        sa.Column("email", sa.String(255), nullable=False, comment="Unique login identifier"),
        sa.Column("password_hash", sa.String(255), nullable=False, comment="bcrypt hash of the password"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    # Unique indexes back the registration uniqueness rule under concurrency
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "posts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "image",
            sa.String(512),
            nullable=True,
            comment="Public path of the attached image, e.g. /uploads/1700000000000-ab12cd34.png",
        ),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column(
            "author_name",
            sa.String(50),
            nullable=False,
            comment="Author's username when the post was created",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_posts_author_id", "posts", ["author_id"])
    # Both listings are newest-first
    op.create_index("idx_posts_created_at", "posts", [sa.text("created_at DESC")])


def downgrade() -> None:
    """Drop posts first; it holds the foreign key to users."""
    op.drop_index("idx_posts_created_at", table_name="posts")
    op.drop_index("ix_posts_author_id", table_name="posts")
    op.drop_table("posts")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
