"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # SQL store (DATABASE_URL wins over the postgres_* parts)
    database_url: str = ""
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "connect_user"
    postgres_password: str = "password"
    postgres_db: str = "career_connect"

    # MongoDB (role-specific profile documents)
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "career_connect_profiles"

    # AI assistant (OpenAI-compatible completion endpoint)
    assistant_api_key: str = ""
    assistant_base_url: str = "https://api.openai.com/v1"
    assistant_model: str = "gpt-4o-mini"
    assistant_max_tokens: int = 800

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # App
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    create_tables_on_startup: bool = True

    @property
    def sqlalchemy_url(self) -> str:
        """Connection URL for the SQL store."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
