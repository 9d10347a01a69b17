"""Configuration for the Task Studio API client."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Runtime configuration for :class:`~task_studio.client.TaskBoardController`."""

    model_config = SettingsConfigDict(
        env_prefix="TASK_STUDIO_CLIENT_",
        extra="ignore",
    )

    api_base_url: str = "http://localhost:8000/api"
    timeout_seconds: float = Field(default=10.0, gt=0)
    debounce_seconds: float = Field(default=0.32, ge=0)
    notice_seconds: float = Field(default=2.6, gt=0)
    board_page_size: int = Field(default=200, ge=1)
    default_page_size: int = Field(default=8, ge=1)

    @field_validator("api_base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value


__all__ = ["ClientSettings"]
