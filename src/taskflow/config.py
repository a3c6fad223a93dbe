"""Configuration for TaskFlow."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnhanceMode(str, Enum):
    """How the enhancement webhook is used when creating a task."""

    REQUEST_RESPONSE = "request_response"  # Webhook returns enhanced title, we insert
    FIRE_AND_FORGET = "fire_and_forget"  # Webhook inserts via POST /tasks itself


class Config(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(env_prefix="TASKFLOW_", env_file=".env", extra="ignore")

    database_url: str = Field(default="sqlite+aiosqlite:///./taskflow.db")
    api_token: str | None = Field(default=None)
    enhance_webhook_url: str | None = Field(default=None)
    enhance_mode: EnhanceMode = Field(default=EnhanceMode.REQUEST_RESPONSE)
    enhance_timeout: float = Field(default=10.0)
    max_notes_per_task: int = Field(default=5)
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)
    log_level: str = Field(default="INFO")
