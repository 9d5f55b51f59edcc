"""
Blog Backend — User Service
=============================

What:  Registration and login.
How:   Composes the PasswordHasher, the TokenService and database queries.
Who:   Called by the /api/register and /api/login route handlers.

Registration flow:
    1. Look for an existing user with the same email OR username → ConflictError
    2. Hash the password (bcrypt, in the threadpool)
    3. Insert and flush; a unique-index violation here means another request
       registered the same name in between → also ConflictError

Login flow:
    1. Look up by email
    2. Verify the password hash
    3. Either failure → InvalidCredentialsError (same message for both)
    4. Issue a 24h token with userId + username
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, DatabaseError, InvalidCredentialsError
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.user import LoginResponse, PublicUser
from app.security import password_hasher, token_service

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for user accounts.

    Stateless: every call receives its own session, so a single instance is
    shared by all requests.
    """

    async def register(
        self,
        db: AsyncSession,
        username: str,
        email: str,
        password: str,
    ) -> MessageResponse:
        """
        Create a new user account.

        Returns:
            MessageResponse confirming creation. No token: the client logs in
            separately.

        Raises:
            ConflictError: username or email already taken
            DatabaseError: query or insert failed
        """
        try:
            result = await db.execute(
                select(User.id).where(or_(User.email == email, User.username == username))
            )
            if result.first() is not None:
                logger.info("Registration rejected: username or email already taken")
                raise ConflictError()

            password_hash = await password_hasher.hash_async(password)
            user = User(username=username, email=email, password_hash=password_hash)
            db.add(user)
            await db.flush()

        except IntegrityError:
            # Lost a race with a concurrent registration for the same name
            logger.info("Registration rejected by unique index")
            raise ConflictError()
        except SQLAlchemyError as e:
            logger.error("Database error during registration: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "register", "error_type": type(e).__name__})

        logger.info("User registered: %s", user.id)
        return MessageResponse(message="User created successfully")

    async def login(self, db: AsyncSession, email: str, password: str) -> LoginResponse:
        """
        Authenticate by email and password.

        Raises:
            InvalidCredentialsError: unknown email or wrong password
            DatabaseError: lookup failed
        """
        try:
            result = await db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "login", "error_type": type(e).__name__})

        if user is None:
            raise InvalidCredentialsError(context={"reason": "unknown_email"})

        if not await password_hasher.verify_async(password, user.password_hash):
            logger.info("Login failed for user %s", user.id)
            raise InvalidCredentialsError(context={"reason": "wrong_password"})

        token = token_service.issue(user.id, user.username)
        logger.info("User logged in: %s", user.id)

        return LoginResponse(token=token, user=PublicUser.model_validate(user))


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
