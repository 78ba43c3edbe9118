from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "immosync"
    environment: str = "dev"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "postgresql+psycopg2://immosync:immosync@db:5432/immosync"
    redis_url: str = "redis://redis:6379/0"
    sync_queue_name: str = "openimmo"

    cors_origins: str = "*"
    rate_limit_per_minute: int = 60

    # Logical paths of interfaces, folders and assets are relative to this root.
    files_root: Path = Path("var/files")
    max_asset_size: int = 3_000_000

    send_anonymized_data: bool = False
    telemetry_url: str | None = None


@lru_cache
def get_settings() -> Settings:
    return Settings()
