"""
Blog Backend — Post Service (Business Logic)
==============================================

What:  Create, read, update and delete blog posts.
Why:   Keeps ownership rules and storage orchestration out of the routes.
How:   Composes FileService (images) and database operations.
Who:   Called by the /api/posts and /api/my-posts route handlers.

Ownership:
    Update and delete load the post first, then compare post.author with
    identity.user_id. Both are uuid.UUID, so the comparison is typed.
    Missing post → NotFoundError (404); different author → PermissionDeniedError (403).

Concurrent writers:
    If another request deletes the post between our read and our write, the
    UPDATE/DELETE matches no row. That is reported as NotFoundError, so the
    losing writer sees the same answer as if it had arrived later.

Images:
    A new upload is written before the database change. If the database
    change then fails, the fresh file is removed again. Old images are never
    deleted by update or delete.
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.exceptions import (
    DatabaseError,
    InvalidTokenError,
    NotFoundError,
    PermissionDeniedError,
)
from app.models.post import Post
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.post import PostResponse
from app.schemas.user import Identity
from app.services.file_service import file_service

logger = logging.getLogger(__name__)

# (filename, bytes) of an uploaded image
ImageUpload = Tuple[str, bytes]


def parse_post_id(post_id: str) -> uuid.UUID:
    """
    Malformed identifiers can never match a post, so they are reported as
    not found rather than as a validation error.
    """
    try:
        return uuid.UUID(str(post_id))
    except ValueError:
        raise NotFoundError(resource="post", resource_id=str(post_id))


class PostService:
    """
    Business logic layer for post operations.

    Responsibilities:
        - list_posts() / list_user_posts(): newest-first listings
        - get_post(): single post with not-found handling
        - create_post(): optional image + insert
        - update_post() / delete_post(): ownership-checked mutations

    Database errors are wrapped in DatabaseError; our own exceptions
    propagate unchanged.
    """

    async def list_posts(self, db: AsyncSession) -> List[PostResponse]:
        """All posts, newest first. Public."""
        try:
            result = await db.execute(
                select(Post).order_by(desc(Post.created_at), desc(Post.id))
            )
            posts = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "list_posts", "error_type": type(e).__name__})

        return [PostResponse.model_validate(post) for post in posts]

    async def list_user_posts(self, db: AsyncSession, identity: Identity) -> List[PostResponse]:
        """Posts written by the authenticated user, newest first."""
        try:
            result = await db.execute(
                select(Post)
                .where(Post.author == identity.user_id)
                .order_by(desc(Post.created_at), desc(Post.id))
            )
            posts = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing posts for %s: %s", identity.user_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "list_user_posts", "error_type": type(e).__name__})

        return [PostResponse.model_validate(post) for post in posts]

    async def get_post(self, db: AsyncSession, post_id: str) -> PostResponse:
        """
        Retrieve a single post.

        Raises:
            NotFoundError: no post with this id (or a malformed id)
            DatabaseError: query failed
        """
        post = await self._load(db, parse_post_id(post_id))
        return PostResponse.model_validate(post)

    async def create_post(
        self,
        db: AsyncSession,
        identity: Identity,
        title: str,
        content: str,
        image: Optional[ImageUpload] = None,
    ) -> PostResponse:
        """
        Create a post owned by the authenticated user.

        author_name is copied from the token's username at this moment and
        never refreshed afterwards.

        Raises:
            InvalidTokenError: the token's user does not exist
            ValidationError: the image was rejected
            FileStorageError: the image could not be written
            DatabaseError: insert failed
        """
        await self._ensure_author_exists(db, identity)

        image_path: Optional[str] = None
        if image is not None:
            image_path = await file_service.save_image(*image)

        post = Post(
            title=title,
            content=content,
            image=image_path,
            author=identity.user_id,
            author_name=identity.username,
        )

        try:
            db.add(post)
            await db.flush()
        except IntegrityError:
            # Foreign key on posts.author_id: the user vanished after the check
            if image_path:
                await file_service.cleanup_file(image_path)
            logger.info("Post rejected: author %s does not exist", identity.user_id)
            raise InvalidTokenError(context={"reason": "unknown_user"})
        except SQLAlchemyError as e:
            if image_path:
                await file_service.cleanup_file(image_path)
            logger.error("Database error creating post: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "create_post", "error_type": type(e).__name__})

        logger.info("Post %s created by %s", post.id, identity.user_id)
        return PostResponse.model_validate(post)

    async def update_post(
        self,
        db: AsyncSession,
        identity: Identity,
        post_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
        image: Optional[ImageUpload] = None,
    ) -> PostResponse:
        """
        Update a post's title, content and/or image.

        Empty or missing title/content keep their current values. A new image
        replaces the stored reference.

        Raises:
            NotFoundError: the post does not exist (or vanished mid-update)
            PermissionDeniedError: the caller is not the author
            ValidationError / FileStorageError: the new image was rejected or not written
            DatabaseError: update failed
        """
        post = await self._load(db, parse_post_id(post_id))
        self._ensure_owner(post, identity)

        image_path: Optional[str] = None
        if image is not None:
            image_path = await file_service.save_image(*image)

        if title:
            post.title = title
        if content:
            post.content = content
        if image_path:
            post.image = image_path

        try:
            await db.flush()
        except StaleDataError:
            if image_path:
                await file_service.cleanup_file(image_path)
            logger.info("Post %s was deleted during update", post_id)
            raise NotFoundError(resource="post", resource_id=str(post_id))
        except SQLAlchemyError as e:
            if image_path:
                await file_service.cleanup_file(image_path)
            logger.error("Database error updating post %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "update_post", "error_type": type(e).__name__})

        logger.info("Post %s updated by %s", post.id, identity.user_id)
        return PostResponse.model_validate(post)

    async def delete_post(self, db: AsyncSession, identity: Identity, post_id: str) -> MessageResponse:
        """
        Permanently delete a post. Its image file stays on disk.

        Raises:
            NotFoundError: the post does not exist (or was already deleted)
            PermissionDeniedError: the caller is not the author
            DatabaseError: delete failed
        """
        pid = parse_post_id(post_id)
        post = await self._load(db, pid)
        self._ensure_owner(post, identity)

        try:
            result = await db.execute(delete(Post).where(Post.id == pid))
        except SQLAlchemyError as e:
            logger.error("Database error deleting post %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "delete_post", "error_type": type(e).__name__})

        if result.rowcount == 0:
            raise NotFoundError(resource="post", resource_id=str(post_id))

        logger.info("Post %s deleted by %s", pid, identity.user_id)
        return MessageResponse(message="Post deleted successfully")

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load(self, db: AsyncSession, post_id: uuid.UUID) -> Post:
        try:
            result = await db.execute(select(Post).where(Post.id == post_id))
            post = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching post %s: %s", post_id, str(e))
            raise DatabaseError(context={"post_id": str(post_id), "error_type": type(e).__name__})

        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return post

    async def _ensure_author_exists(self, db: AsyncSession, identity: Identity) -> None:
        """
        A correctly signed token can still name a user the store does not
        know (another deployment's secret, a wiped database). Such a token
        identifies nobody, so it is rejected like any other invalid token.
        """
        try:
            author = await db.get(User, identity.user_id)
        except SQLAlchemyError as e:
            logger.error("Database error looking up author %s: %s", identity.user_id, str(e))
            raise DatabaseError(context={"operation": "create_post", "error_type": type(e).__name__})

        if author is None:
            logger.info("Post rejected: author %s does not exist", identity.user_id)
            raise InvalidTokenError(context={"reason": "unknown_user"})

    def _ensure_owner(self, post: Post, identity: Identity) -> None:
        if post.author != identity.user_id:
            logger.warning(
                "User %s attempted to modify post %s owned by %s",
                identity.user_id,
                post.id,
                post.author,
            )
            raise PermissionDeniedError(
                context={"post_id": str(post.id), "user_id": str(identity.user_id)}
            )


# ── Singleton Instance ────────────────────────────────────────────────────
post_service = PostService()
