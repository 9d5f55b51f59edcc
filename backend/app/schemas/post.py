"""
Blog Backend — Post Schemas
=============================

What:  The JSON shape of a post as returned by every post endpoint.
How:   Field names are snake_case in Python and camelCase on the wire
       (authorName, createdAt, updatedAt), matching the format the frontend
       has always consumed.

Timestamps are always UTC with an explicit offset. SQLite hands back naive
datetimes for timezone-aware columns; those are stored as UTC and tagged
as such here, so a freshly created post and a reloaded one serialize alike.

Post input arrives as multipart form fields (title, content, image), so
there is no request model here; the route declares Form/File parameters.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class PostResponse(BaseModel):
    """
    What:  Full representation of a post.
    Who:   Returned by every /api/posts and /api/my-posts endpoint.
    """
    id: uuid.UUID = Field(description="Unique post identifier")
    title: str
    content: str
    image: Optional[str] = Field(default=None, description="Public path of the attached image")
    author: uuid.UUID = Field(description="ID of the user who wrote the post")
    author_name: str = Field(description="Author's username when the post was created")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)
