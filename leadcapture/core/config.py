from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: str = Field(default="production", validation_alias="ENVIRONMENT")
    service_name: str = Field(default="elevaforge-backend", validation_alias="SERVICE_NAME")

    # Server
    api_host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    api_port: int = Field(default=3001, validation_alias="PORT")
    api_prefix: str = Field(default="/api", validation_alias="API_PREFIX")

    # Datastore
    supabase_url: Optional[str] = Field(default=None, validation_alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(default=None, validation_alias="SUPABASE_SERVICE_ROLE_KEY")
    leads_table: str = Field(default="leads", validation_alias="LEADS_TABLE")
    lead_origin_tag: str = Field(default="landing_elevaforge", validation_alias="LEAD_ORIGIN_TAG")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # CORS / origin checks
    allowed_origins: str = Field(default="http://localhost:3000", validation_alias="ALLOWED_ORIGINS")

    # Request limits
    max_body_bytes: int = Field(default=8 * 1024, validation_alias="MAX_BODY_BYTES")
    honeypot_field: str = Field(default="_hp", validation_alias="HONEYPOT_FIELD")

    # Rate Limiting
    rate_limit_requests: int = Field(default=10, validation_alias="RATE_LIMIT_REQUESTS")
    rate_limit_period: int = Field(default=60, validation_alias="RATE_LIMIT_PERIOD")
    strict_rate_limit_requests: int = Field(default=5, validation_alias="STRICT_RATE_LIMIT_REQUESTS")
    strict_rate_limit_period: int = Field(default=15 * 60, validation_alias="STRICT_RATE_LIMIT_PERIOD")

    # Monitoring
    sentry_dsn: Optional[str] = Field(default=None, validation_alias="SENTRY_DSN")
    metrics_enabled: bool = Field(default=True, validation_alias="METRICS_ENABLED")

    @field_validator("environment")
    def validate_environment(cls, v):
        valid_envs = ["development", "testing", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v):
        valid_formats = ["json", "console"]
        if v not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return v

    @field_validator("max_body_bytes", "rate_limit_requests", "rate_limit_period",
                     "strict_rate_limit_requests", "strict_rate_limit_period")
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    def origins(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
