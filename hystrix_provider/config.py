"""Configuration management using Pydantic settings.

Two-layer configuration system:
1. Environment: Loads raw values from environment variables (UPPER_CASE)
2. Settings: Clean runtime settings with lowercase fields and derived values

Provider properties (``hystrix.metrics.enabled`` etc.) are only seeded into
the runtime context when the matching variable is set; otherwise each
provider inserts its own default during initialize().
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from silverware.exceptions import ConfigurationError
from silverware.providers import HttpServerSilverService, HystrixSilverService

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Environment(BaseSettings):
    """Raw environment variable loading."""

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Runtime ────────────────────────────────────────────────────────

    LOG_LEVEL: str = Field(default="INFO")
    GRACEFUL_SHUTDOWN_TIMEOUT: int = Field(default=30)
    WAITRESS_THREADS: int = Field(default=8)

    # ── Provider properties ────────────────────────────────────────────

    HTTP_SERVER_ADDRESS: str | None = Field(default=None)
    HTTP_SERVER_PORT: int | None = Field(default=None)
    HYSTRIX_METRICS_ENABLED: str | None = Field(default=None)
    HYSTRIX_METRICS_PATH: str | None = Field(default=None)


class Settings(BaseModel):
    """Runtime settings with lowercase fields and derived values."""

    model_config = ConfigDict(from_attributes=True)

    log_level: str = "INFO"
    graceful_shutdown_timeout: int = 30
    waitress_threads: int = 8

    http_server_address: str | None = None
    http_server_port: int | None = None
    hystrix_metrics_enabled: str | None = None
    hystrix_metrics_path: str | None = None

    def to_properties(self) -> dict[str, Any]:
        """Initial runtime context properties, only for values that were set."""
        candidates = {
            HttpServerSilverService.HTTP_SERVER_ADDRESS: self.http_server_address,
            HttpServerSilverService.HTTP_SERVER_PORT: (
                str(self.http_server_port) if self.http_server_port is not None else None
            ),
            HystrixSilverService.HYSTRIX_METRICS_ENABLED: self.hystrix_metrics_enabled,
            HystrixSilverService.HYSTRIX_METRICS_PATH: self.hystrix_metrics_path,
        }
        return {key: value for key, value in candidates.items() if value is not None}

    def validate_config(self) -> None:
        errors: list[str] = []

        if self.hystrix_metrics_path is not None and not self.hystrix_metrics_path.strip("/ "):
            errors.append("HYSTRIX_METRICS_PATH must not be empty")

        if self.http_server_port is not None and not 0 <= self.http_server_port <= 65535:
            errors.append("HTTP_SERVER_PORT must be between 0 and 65535")

        if self.graceful_shutdown_timeout <= 0:
            errors.append("GRACEFUL_SHUTDOWN_TIMEOUT must be positive")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            )

    @classmethod
    def load(cls, env: "Environment | None" = None) -> "Settings":
        if env is None:
            env = Environment()

        return cls(
            log_level=env.LOG_LEVEL.upper(),
            graceful_shutdown_timeout=env.GRACEFUL_SHUTDOWN_TIMEOUT,
            waitress_threads=env.WAITRESS_THREADS,
            http_server_address=env.HTTP_SERVER_ADDRESS,
            http_server_port=env.HTTP_SERVER_PORT,
            hystrix_metrics_enabled=env.HYSTRIX_METRICS_ENABLED,
            hystrix_metrics_path=env.HYSTRIX_METRICS_PATH,
        )
