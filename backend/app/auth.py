"""
Blog Backend — Auth Guard
===========================

What:  FastAPI dependency protecting routes that need a logged-in user.
How:   Reads `Authorization: Bearer <token>`, verifies it with the
       TokenService, attaches the Identity to request.state and returns it.

Outcomes:
    no header / not a Bearer credential → AuthenticationError (401)
    bad signature / expired / bad claims → InvalidTokenError (403)
    valid                               → Identity(user_id, username)

Usage:
    @router.get("/my-posts")
    async def my_posts(identity: Identity = Depends(get_current_identity)): ...
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.exceptions import AuthenticationError
from app.schemas.user import Identity
from app.security import token_service

# auto_error=False: a missing header must produce our 401 body, not
# FastAPI's built-in error
bearer_scheme = HTTPBearer(auto_error=False, description="Token returned by POST /api/login")


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    identity = token_service.verify(credentials.credentials)
    request.state.identity = identity
    return identity
