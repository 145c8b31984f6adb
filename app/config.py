from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="pairchat API", description="Human readable service name")
    environment: str = Field(default="development", description="Deployment environment name")
    debug: bool = Field(default=False, description="Enable debug mode")

    cors_origins: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost",
            "http://localhost:3000",
            "http://127.0.0.1",
            "http://127.0.0.1:3000",
        ],
        description="List of allowed CORS origins",
    )
    cors_allow_origin_regex: str | None = Field(
        default=None,
        description="Optional regular expression that matches allowed CORS origins",
    )

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Connection URL of the Redis instance holding users, contacts and messages",
    )
    redis_namespace: str = Field(
        default="pairchat",
        description="Prefix prepended to every persistence key",
    )

    jwt_secret_key: str = Field(default="changeme")
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=30 * 24 * 60)

    password_min_length: int = Field(default=6)
    chat_history_default_limit: int = Field(default=50)
    chat_history_max_limit: int = Field(default=100)
    chat_message_max_length: int = Field(default=2000)
    contact_preview_length: int = Field(
        default=50, description="Number of characters of the latest message shown in contact lists"
    )

    realtime_redis_url: str | None = Field(
        default=None,
        description="Redis URL used for pub/sub fan-out; falls back to redis_url",
    )
    realtime_namespace: str = Field(default="pairchat.realtime")
    realtime_node_id: str | None = Field(default=None)
    realtime_connect_on_startup: bool = Field(
        default=True, description="Connect the pub/sub transport eagerly when the app starts"
    )
    websocket_receive_timeout_seconds: int = Field(default=30)

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[1] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def realtime_url(self) -> str:
        return self.realtime_redis_url or self.redis_url

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):  # type: ignore[override]
        if v in (None, "", Ellipsis):
            return v
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, (list, tuple, set)):
            return list(v)
        return v

    @field_validator("redis_namespace", "realtime_namespace", mode="before")
    @classmethod
    def strip_namespace(cls, value: str | None) -> str:
        if value is None:
            return ""
        return str(value).strip().rstrip(":.")


@lru_cache
def get_settings() -> Settings:
    return Settings()
