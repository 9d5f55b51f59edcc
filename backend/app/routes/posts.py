"""
Blog Backend — Post Route Handlers
====================================

What:  Post listing, detail, and author-only create/update/delete.
How:   Extracts form fields and files, resolves the caller through the auth
       guard where required, delegates to PostService.

Route Inventory:
    GET    /api/posts          public   newest-first list
    GET    /api/posts/{id}     public   single post
    GET    /api/my-posts       auth     caller's posts, newest first
    POST   /api/posts          auth     multipart: title, content, image?
    PUT    /api/posts/{id}     auth     multipart: title?, content?, image?
    DELETE /api/posts/{id}     auth

Post ids are taken as plain strings: a malformed id is answered with 404 by
the service, the same as an id that does not exist.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_current_identity
from app.database import get_db_session
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.post import PostResponse
from app.schemas.user import Identity
from app.services.file_service import file_service
from app.services.post_service import ImageUpload, post_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Posts"])

AUTH_ERRORS = {
    401: {"description": "Missing bearer token", "model": ErrorResponse},
    403: {"description": "Invalid token or not the author", "model": ErrorResponse},
}


async def read_image(image: Optional[UploadFile]) -> Optional[ImageUpload]:
    """
    Reads an optional upload into memory, never more than the upload limit
    plus one byte. A declared size over the limit is rejected before
    reading. Browsers submit an empty file part when no file was chosen;
    that counts as "no image".
    """
    if image is None or not image.filename:
        return None
    try:
        file_service.check_declared_size(image.size)
        content = await image.read(file_service.read_limit)
    finally:
        await image.close()
    logger.info("Received image upload: filename=%s, size=%d bytes", image.filename, len(content))
    return image.filename, content


@router.get(
    "/posts",
    response_model=List[PostResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all posts, newest first",
)
async def list_posts(db: AsyncSession = Depends(get_db_session)) -> List[PostResponse]:
    return await post_service.list_posts(db)


@router.get(
    "/my-posts",
    response_model=List[PostResponse],
    responses={**AUTH_ERRORS, 500: {"description": "Server error", "model": ErrorResponse}},
    summary="List the caller's posts, newest first",
)
async def list_my_posts(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> List[PostResponse]:
    return await post_service.list_user_posts(db, identity)


@router.get(
    "/posts/{post_id}",
    response_model=PostResponse,
    responses={
        404: {"description": "Post not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single post",
)
async def get_post(post_id: str, db: AsyncSession = Depends(get_db_session)) -> PostResponse:
    return await post_service.get_post(db, post_id)


@router.post(
    "/posts",
    status_code=201,
    response_model=PostResponse,
    responses={
        400: {"description": "Unsupported or oversized image", "model": ErrorResponse},
        **AUTH_ERRORS,
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a post with an optional image",
)
async def create_post(
    title: str = Form(..., min_length=1, max_length=255),
    content: str = Form(..., min_length=1),
    image: Optional[UploadFile] = File(default=None, description="Optional image (png, jpg, jpeg, gif, webp)"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    """
    The author and the author's display name come from the bearer token,
    never from the form.
    """
    upload = await read_image(image)
    return await post_service.create_post(
        db=db,
        identity=identity,
        title=title,
        content=content,
        image=upload,
    )


@router.put(
    "/posts/{post_id}",
    response_model=PostResponse,
    responses={
        400: {"description": "Unsupported or oversized image", "model": ErrorResponse},
        **AUTH_ERRORS,
        404: {"description": "Post not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Update a post (author only)",
)
async def update_post(
    post_id: str,
    title: Optional[str] = Form(default=None, max_length=255),
    content: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    """Fields left out (or sent empty) keep their current values."""
    upload = await read_image(image)
    return await post_service.update_post(
        db=db,
        identity=identity,
        post_id=post_id,
        title=title,
        content=content,
        image=upload,
    )


@router.delete(
    "/posts/{post_id}",
    response_model=MessageResponse,
    responses={
        **AUTH_ERRORS,
        404: {"description": "Post not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a post (author only)",
)
async def delete_post(
    post_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await post_service.delete_post(db, identity, post_id)
