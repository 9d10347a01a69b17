"""Schemas describing authentication payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from .user import UserPublic

PASSWORD_MIN_LENGTH = 8


class RegisterRequest(BaseModel):
    """Incoming payload for registering a new user."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    password_confirmation: str

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _passwords_match(self) -> "RegisterRequest":
        if self.password != self.password_confirmation:
            raise ValueError("Password confirmation does not match.")
        return self


class LoginRequest(BaseModel):
    """Credentials submitted to obtain a bearer token."""

    email: EmailStr
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    """Issued bearer token together with the authenticated user."""

    user: UserPublic
    token: str
    token_type: str = Field(default="bearer", frozen=True)
    expires_at: datetime


class TokenPayload(BaseModel):
    """Validated JWT claims."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    exp: datetime
    iat: datetime
    jti: str


__all__ = [
    "AuthResponse",
    "LoginRequest",
    "PASSWORD_MIN_LENGTH",
    "RegisterRequest",
    "TokenPayload",
]
