"""
Blog Backend — User & Auth Schemas
====================================

What:  Request/response contracts for registration and login, plus the
       Identity carried by an authenticated request.
Why:   The password hash never leaves the service: responses are built from
       PublicUser, which has no field for it.
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RegisterRequest(BaseModel):
    """Body of POST /api/register."""
    username: str = Field(min_length=1, max_length=50, description="Unique display name")
    email: str = Field(min_length=3, max_length=255, description="Unique login email")
    password: str = Field(min_length=1, max_length=128, description="Plain password (hashed server-side)")

    @field_validator("username", "email")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        local, _, domain = v.rpartition("@")
        if not local or not domain:
            raise ValueError("must be a valid email address")
        return v


class LoginRequest(BaseModel):
    """Body of POST /api/login."""
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: str) -> str:
        return v.strip()


class PublicUser(BaseModel):
    """What the API reveals about a user: no password hash, ever."""
    id: uuid.UUID
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    """Returned by POST /api/login: the bearer token plus the public user."""
    token: str = Field(description="Signed bearer token, valid for 24 hours")
    user: PublicUser


class Identity(BaseModel):
    """
    The authenticated caller, decoded from a verified bearer token.

    user_id is a real UUID so ownership checks compare typed identifiers,
    never a string against a database value.
    """
    user_id: uuid.UUID
    username: str

    model_config = ConfigDict(frozen=True)
