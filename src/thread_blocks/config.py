from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    database_path: str = ".data/thread_blocks_search.db"

    log_level: str = "INFO"

    # Matching cost grows with input size; bodies above this are rejected.
    max_body_chars: int = 200_000

    search_default_limit: int = 20
    search_max_limit: int = 200

    @property
    def database_file(self) -> Path:
        return Path(self.database_path)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
