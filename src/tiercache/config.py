from __future__ import annotations

from uuid import uuid4

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TIERCACHE_", env_file=".env", extra="ignore")

    app_name: str = "tiercache"
    env: str = "dev"
    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = 8080

    # Instance ID for distributed deployments
    instance_id: str = Field(default_factory=lambda: str(uuid4())[:8])

    # Fast store
    cache_backend: str = Field(default="memory", validation_alias="CACHE_BACKEND")
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    cache_default_ttl: float = Field(default=600.0, validation_alias="CACHE_DEFAULT_TTL")
    cache_single_flight: bool = Field(default=False, validation_alias="CACHE_SINGLE_FLIGHT")
    enable_invalidation_broadcast: bool = Field(
        default=False, validation_alias="ENABLE_INVALIDATION_BROADCAST"
    )

    # Source of record
    source_base_url: str = Field(
        default="https://jsonplaceholder.typicode.com", validation_alias="SOURCE_BASE_URL"
    )
    source_timeout: float = Field(default=2.0, validation_alias="SOURCE_TIMEOUT")
    source_connect_timeout: float = Field(default=1.5, validation_alias="SOURCE_CONNECT_TIMEOUT")

    # Observability
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")
    log_level: str = "INFO"
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")


settings = Settings()
