"""Application settings loaded from the environment."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings. Every field can be overridden with a QUIZBUILDER_* variable."""

    model_config = SettingsConfigDict(
        env_prefix="QUIZBUILDER_", env_file=".env", extra="ignore"
    )

    app_name: str = "Quiz & Questionnaire Builder"

    # Database
    database_url: str = "sqlite:///./quizbuilder.db"
    sql_echo: bool = False

    # Sessions / CORS
    secret_key: str = "CHANGE_ME_TO_A_RANDOM_SECRET"
    bcrypt_rounds: int = 12
    cors_origins: List[str] = ["http://localhost:3000"]

    # Logging
    log_level: str = "INFO"

    # Default admin seeded on startup; empty email disables seeding
    seed_admin_email: str = "admin@example.com"
    seed_admin_password: str = "admin123"


@lru_cache
def get_settings() -> Settings:
    return Settings()
