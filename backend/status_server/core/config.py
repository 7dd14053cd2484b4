from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_PORT = 3000
DEFAULT_JSON_BODY_LIMIT = 100 * 1024


class AppEnv(str, Enum):
    LOCAL = "local"
    DEV = "dev"
    PROD = "prod"


class AppSettings(BaseModel):
    name: str = Field(default="Status Server")
    env: AppEnv = Field(default=AppEnv.DEV)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=DEFAULT_PORT)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    json_body_limit: int = Field(default=DEFAULT_JSON_BODY_LIMIT)

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        if not (0 <= value <= 65535):
            raise ValueError("PORT must be between 0 and 65535")
        return value

    @field_validator("json_body_limit")
    @classmethod
    def validate_json_body_limit(cls, value: int) -> int:
        if value < 0:
            raise ValueError("STATUS_JSON_BODY_LIMIT must not be negative")
        return value


class OTELSettings(BaseModel):
    enabled: bool = False
    service_name: str = Field(default="status-server")
    exporter_otlp_endpoint: str = Field(default="http://localhost:4317")


def resolve_port(raw: Optional[str], default: int = DEFAULT_PORT) -> int:
    """
    Turn the raw PORT value into a usable port number.

    Anything that is not a plain base-10 integer in 0..65535 falls back
    to ``default``; 0 lets the OS pick a free port.
    """
    if raw is None:
        return default
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        return default
    port = int(text)
    if port > 65535:
        return default
    return port


class Settings(BaseSettings):
    """
    Top-level service settings loaded from environment.

    The listening port comes from the plain PORT variable, everything
    else is namespaced under STATUS_*.
    """

    # App
    port: Optional[str] = Field(default=None, validation_alias="PORT")
    host: Optional[str] = None
    app_name: Optional[str] = None
    app_env: Optional[str] = None
    log_level: Optional[str] = None
    json_body_limit: Optional[int] = None

    # OTEL
    otel_enabled: bool = False
    otel_service_name: Optional[str] = None
    otel_exporter_otlp_endpoint: Optional[str] = None

    class Config:
        env_prefix = "STATUS_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def app(self) -> AppSettings:
        defaults = AppSettings()
        return AppSettings(
            name=self.app_name or defaults.name,
            env=AppEnv(self.app_env or defaults.env),
            host=self.host or defaults.host,
            port=resolve_port(self.port),
            log_level=(self.log_level or defaults.log_level).upper(),
            json_body_limit=(
                self.json_body_limit
                if self.json_body_limit is not None
                else defaults.json_body_limit
            ),
        )

    @property
    def otel(self) -> OTELSettings:
        defaults = OTELSettings()
        return OTELSettings(
            enabled=self.otel_enabled,
            service_name=self.otel_service_name or defaults.service_name,
            exporter_otlp_endpoint=self.otel_exporter_otlp_endpoint
            or defaults.exporter_otlp_endpoint,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance to avoid re-parsing env on every import.

    Usage:
        from backend.status_server.core.config import get_settings
        settings = get_settings()
        settings.app.port, settings.app.host, ...
    """
    return Settings()


settings = get_settings()
