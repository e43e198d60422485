from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AnyHttpUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


INSECURE_JWT_SECRET = "changeme"
LOCAL_ENVIRONMENTS = frozenset({"development", "test"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="ClassMate API", description="Human readable service name")
    environment: str = Field(default="development", description="Deployment environment name")
    debug: bool = Field(default=False, description="Enable debug mode")

    cors_origins: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        description="List of allowed CORS origins",
    )
    cors_allow_origin_regex: str | None = Field(
        default=r"^(http://localhost(:\d+)?|https://([a-z0-9-]+\.)*vercel\.app)$",
        description="Optional regular expression that matches allowed CORS origins",
    )

    database_url_override: str | None = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="Full SQLAlchemy DSN; takes precedence over the DB_* parts",
    )
    db_user: str = Field(default="classmate")
    db_password: str = Field(default="classmate")
    db_host: str = Field(default="db")
    db_port: int = Field(default=3306)
    db_name: str = Field(default="classmate")
    db_isolation_level: str | None = Field(
        default="READ COMMITTED",
        description="Transaction isolation for pooled connections; driver default when unset",
    )

    auth_jwt_secret: str = Field(
        default=INSECURE_JWT_SECRET,
        description="Shared secret used by the identity provider to sign access tokens",
    )
    auth_jwt_algorithm: str = Field(default="HS256")
    auth_jwt_audience: str | None = Field(
        default=None,
        description="Expected 'aud' claim; audience is not verified when unset",
    )
    institutional_email_pattern: str = Field(
        default=r"\.(edu|edu\.[a-z]{2}|ac\.[a-z]{2})$",
        description="Regular expression identifying institutional e-mail domains",
    )

    daily_match_quota: int = Field(
        default=3, ge=0, description="Imports allowed per UTC day for non-privileged users"
    )
    contact_request_cooldown_minutes: int = Field(
        default=60, ge=0, description="Wait time after a rejected contact request"
    )
    contact_message_max_length: int = Field(default=200, ge=1)
    notifications_page_size: int = Field(default=50, ge=1, le=500)
    room_resolve_max_attempts: int = Field(default=3, ge=1)

    catalog_school: str = Field(
        default="Rutgers University",
        description="School name assigned to courses created from catalog sections",
    )

    rate_limit_enabled: bool = Field(default=True)
    rate_limit_window_seconds: int = Field(default=60, ge=1)
    rate_limit_max_requests: int = Field(default=120, ge=1)
    rate_limit_redis_url: str | None = Field(
        default=None,
        description="Redis URL backing the rate limit buckets; in-process buckets when unset",
    )

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"mysql+pymysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @model_validator(mode="after")
    def require_jwt_secret_outside_development(self) -> "Settings":
        if (
            self.auth_jwt_secret == INSECURE_JWT_SECRET
            and self.environment.lower() not in LOCAL_ENVIRONMENTS
        ):
            raise ValueError("AUTH_JWT_SECRET must be set outside development")
        return self

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


@lru_cache
def get_settings() -> Settings:
    return Settings()
