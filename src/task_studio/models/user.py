"""User domain models built with SQLModel."""

from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlmodel import Field, Relationship, SQLModel

from .common import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .task import Task


class UserBase(SQLModel, table=False):
    """Shared attributes for user models."""

    name: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )
    email: str = Field(
        max_length=320,
        sa_column=sa.Column(
            sa.String(length=320),
            nullable=False,
            unique=True,
        ),
    )


class User(UserBase, TimestampMixin, table=True):
    """Persistent user model."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )
    tasks: list["Task"] = Relationship(
        back_populates="owner",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


__all__ = ["User", "UserBase"]
