"""Application configuration settings."""

import secrets
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "CAT Prep"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./catprep.db"

    # Paths
    base_dir: Path = Path(__file__).parent.parent
    data_dir: Path = base_dir / "data"
    seed_file: Path = data_dir / "seed.json"
    skip_seeding: bool = False

    # Auth
    secret_key: str = secrets.token_urlsafe(32)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    bcrypt_rounds: int = 12

    # Bootstrap administrator, created on startup when missing
    admin_email: str | None = None
    admin_password: str | None = None
    admin_name: str = "Administrator"

    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Test configuration
    default_question_count: int = 10
    max_question_count: int = 100
    default_overall_minutes: int = 30
    default_per_question_minutes: int = 2
    max_time_limit_minutes: int = 180

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
