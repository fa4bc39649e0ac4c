from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = [PROJECT_ROOT / ".env", ".env"]

DATA_DIR = Path.home() / ".wellness-tracker"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILES, extra="ignore")

    # DB
    DATABASE_URL: str = f"sqlite:///{(DATA_DIR / 'wellness_tracker.db').as_posix()}"
    DATABASE_ECHO: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    # Credentials
    PASSWORD_HASH_ALGORITHM: str = "sha256"
    PASSWORD_SALT_BYTES: int = 16
    USERNAME_MIN_LENGTH: int = 3
    USERNAME_MAX_LENGTH: int = 50
    PASSWORD_MIN_LENGTH: int = 6

    # Analytics windows (days)
    COMPLETION_RATE_DAYS: int = 30
    MOOD_STATS_DAYS: int = 7
    TOP_EMOTIONS: int = 10


settings = Settings()
