"""
Blog Backend — Registration & Login Routes
============================================

What:  POST /api/register and POST /api/login.
How:   Validates the JSON body with Pydantic, delegates to UserService.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import LoginRequest, LoginResponse, RegisterRequest
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=MessageResponse,
    responses={
        201: {"description": "User created"},
        400: {"description": "Username or email already taken", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """
    Create an account. The response carries no token; clients call
    /api/login afterwards.
    """
    return await user_service.register(
        db=db,
        username=body.username,
        email=body.email,
        password=body.password,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        200: {"description": "Bearer token and public user", "model": LoginResponse},
        400: {"description": "Invalid credentials", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Log in and receive a bearer token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    return await user_service.login(db=db, email=body.email, password=body.password)
