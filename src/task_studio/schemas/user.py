"""User-facing Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr


class UserPublic(BaseModel):
    """Minimal public representation of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: EmailStr


__all__ = ["UserPublic"]
