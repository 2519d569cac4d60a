"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewayConfig(BaseSettings):
    """Storage-management endpoint configuration.

    api_timeout bounds every mutating remote call (create, extend) and is
    also the default overall timeout of the delete wait loop.
    """

    model_config = SettingsConfigDict(env_prefix="GATEWAY_")

    endpoint: str = Field(default="http://storage-gateway:8443")
    api_key: str = Field(default="")
    api_timeout: float = Field(default=300.0)  # seconds (5 minutes)
    connect_timeout: float = Field(default=10.0)  # seconds


class DeleteRetryConfig(BaseSettings):
    """Retry-on-conflict loop for datastore removal.

    Removal right after dependents let go of the datastore often fails with
    "resource in use". The loop keeps trying for a short while.
    """

    model_config = SettingsConfigDict(env_prefix="DELETE_RETRY_")

    timeout: float = Field(default=30.0)  # seconds
    min_interval: float = Field(default=2.0)  # seconds between attempts
    delay: float = Field(default=2.0)  # seconds before the first attempt


class DeleteWaitConfig(BaseSettings):
    """Wait-for-invisibility loop after removal succeeded."""

    model_config = SettingsConfigDict(env_prefix="DELETE_WAIT_")

    # None → GatewayConfig.api_timeout
    timeout: float | None = Field(default=None)
    min_interval: float = Field(default=2.0)  # seconds
    delay: float = Field(default=1.0)  # seconds
    not_found_checks: int = Field(default=35)  # empty observations tolerated in a row


class MetricsConfig(BaseSettings):
    """Prometheus metrics configuration."""

    model_config = SettingsConfigDict(env_prefix="METRICS_")

    enabled: bool = Field(default=True)
    port: int = Field(default=9108)
    addr: str = Field(default="0.0.0.0")


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Standard fields added to all logs:
    - schema_version: Log schema version for backwards compatibility
    - service: Service name (dshub-datastore)

    Rate limiting:
    - Prevents log storms from polling loops
    - ERROR logs bypass rate limiting (always logged)
    """

    model_config = SettingsConfigDict(env_prefix="LOGGING_")

    level: str = Field(default="INFO")
    schema_version: str = Field(default="1.0")
    rate_limit_per_minute: int = Field(default=100)
    service_name: str = Field(default="dshub-datastore")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DSHUB_",
        env_nested_delimiter="__",
    )

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    delete_retry: DeleteRetryConfig = Field(default_factory=DeleteRetryConfig)
    delete_wait: DeleteWaitConfig = Field(default_factory=DeleteWaitConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_settings() -> Settings:
    return Settings()
