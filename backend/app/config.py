"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - Secrets (cron secret, admin key, database credentials) come from environment variables
    - get_settings() is cached (lru_cache), one instance per process

Design Decisions:
    - Provider base URLs are settings so tests and staging can point at fakes
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://argenstats:argenstats@db:5432/argenstats"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Cron / admin secrets
    cron_secret_key: str = ""
    admin_sync_key: str = ""

    # Providers
    dolarapi_base_url: str = "https://dolarapi.com/v1"
    bcra_base_url: str = "https://api.bcra.gob.ar/estadisticas/v4.0"
    indec_base_url: str = "https://www.indec.gob.ar"
    embi_sheet_id: str = "1dN9y8nkdAwgqQdUnHgD6bXLt-ACfz6wWNMqaiOvyT1g"
    embi_sheet_gid: str = "0"
    bcra_verify_ssl: bool = False

    # Outbound HTTP resilience
    http_timeout_seconds: int = 30
    http_max_retries: int = 3
    http_base_delay_ms: int = 1000
    http_max_delay_ms: int = 30_000

    # Access control
    allowed_internal_hosts: list[str] = []
    rate_limit_virtual_limit: int = 999_999

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
