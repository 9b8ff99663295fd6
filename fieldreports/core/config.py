"""Configuration management for the field reports service."""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = Field(default="Field Reports Service")
    log_config_path: str | None = Field(default=None)
    log_level: str = Field(default="INFO")
    version: str = Field(default="0.1.0")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")

    database_url: str = Field(default="postgresql+psycopg://fieldreports:fieldreports@db:5432/fieldreports")

    aws_region: str = Field(default="us-east-1")
    s3_endpoint_url: str | None = Field(default=None)
    audit_log_bucket: str = Field(default="fieldreports-audit-logs")
    audit_log_prefix: str = Field(default="audit/records")
    audit_log_sample_rate: float = Field(default=1.0)

    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=True)
    otel_exporter_endpoint: str | None = Field(default=None)

    jwt_algorithm: str = Field(default="HS256")
    jwt_secret_key: str = Field(default="dev-only-change-me")
    access_token_expire_minutes: int = Field(default=15)
    refresh_token_expire_days: int = Field(default=7)

    currency_symbol: str = Field(default="₦")
    default_preparer_name: str = Field(default="Field Officer")

    high_efficiency_threshold: float = Field(default=1000.0)
    low_efficiency_threshold: float = Field(default=3000.0)
    analytics_normalize_keys: bool = Field(default=False)
    analytics_monthly_order: Literal["insertion", "chronological"] = Field(default="chronological")
    analytics_route_pairing: Literal["alphabetical", "visit_order"] = Field(default="alphabetical")

    inference_provider: Literal["deepseek", "free", "local"] = Field(default="local")
    inference_api_key: str = Field(default="")
    inference_model: str = Field(default="deepseek-chat")
    inference_temperature: float = Field(default=0.7)
    inference_max_tokens: int = Field(default=2000)
    inference_base_url: str | None = Field(default=None)
    inference_timeout_seconds: float = Field(default=30.0)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
