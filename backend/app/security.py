"""
Blog Backend — Password Hashing & Bearer Tokens
=================================================

What:  Thin wrappers around passlib (bcrypt) and python-jose (JWT).
Why:   Services depend on these two small interfaces, not on the libraries,
       so tests can swap in cheap settings and the libraries stay replaceable.

Token format:
    HS256-signed JWT with claims {"userId": "<uuid>", "username": "...", "exp": ...}.
    userId keeps the claim name existing clients already read.

Hashing cost:
    bcrypt rounds come from settings.bcrypt_rounds (default 10). Both hashing
    and verification are CPU bound, so the async helpers run them in
    Starlette's threadpool instead of blocking the event loop.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.exceptions import InvalidTokenError
from app.schemas.user import Identity

logger = logging.getLogger(__name__)


class PasswordHasher:
    """One-way salted bcrypt hashing with a tunable cost factor."""

    def __init__(self, rounds: Optional[int] = None):
        self.rounds = rounds or settings.bcrypt_rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=self.rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Returns False (never raises) for a mismatch or an unrecognised hash,
        so callers can treat every failure as "invalid credentials".
        """
        try:
            return self._context.verify(password, password_hash)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be parsed")
            return False

    async def hash_async(self, password: str) -> str:
        return await run_in_threadpool(self.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        return await run_in_threadpool(self.verify, password, password_hash)


class TokenService:
    """
    Issues and verifies signed, time-limited identity tokens.

    verify() is a plain synchronous call: it returns a typed Identity or
    raises InvalidTokenError. Signature, expiry and payload problems all
    surface as the same exception; the reason only goes to the log.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_hours: Optional[int] = None,
    ):
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.expires_in = timedelta(hours=expire_hours or settings.jwt_expire_hours)

    def issue(self, user_id: uuid.UUID, username: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims: Dict[str, Any] = {
            "userId": str(user_id),
            "username": username,
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Identity:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            # ExpiredSignatureError and JWTClaimsError are both JWTError subclasses
            logger.info("Token rejected: %s", type(e).__name__)
            raise InvalidTokenError(context={"reason": type(e).__name__})

        raw_user_id = payload.get("userId")
        username = payload.get("username")
        if not isinstance(raw_user_id, str) or not isinstance(username, str) or not username:
            logger.info("Token rejected: missing identity claims")
            raise InvalidTokenError(context={"reason": "missing_claims"})

        try:
            user_id = uuid.UUID(raw_user_id)
        except ValueError:
            logger.info("Token rejected: malformed userId claim")
            raise InvalidTokenError(context={"reason": "malformed_user_id"})

        return Identity(user_id=user_id, username=username)


# ── Singleton Instances ───────────────────────────────────────────────────
password_hasher = PasswordHasher()
token_service = TokenService()
