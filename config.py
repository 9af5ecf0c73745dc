import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()  # Make sure .env variables are loaded


def _split(value: str):
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings read from the environment (or a .env file)."""

    project_name: str = os.getenv("PROJECT_NAME", "Library & Tours API")
    api_prefix: str = os.getenv("API_PREFIX", "/api")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: Optional[str] = os.getenv("LOG_FILE") or None

    secret_key: str = os.getenv("JWT_SECRET", "supersecretkey")  # use env variable in real apps
    algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))

    # "file", "mongo" or "memory"
    storage_backend: str = os.getenv("STORAGE_BACKEND", "file")
    data_dir: str = os.getenv("DATA_DIR", "data")
    mongo_url: str = os.getenv("MONGO_URL", "mongodb://localhost:27017")
    mongo_db: str = os.getenv("MONGO_DB", "library_db")

    cors_origins: list = field(default_factory=lambda: _split(os.getenv("CORS_ORIGINS", "*")))
    loan_days: int = int(os.getenv("LOAN_DAYS", "14"))
    seed_data: bool = os.getenv("SEED_DATA", "true").lower() in {"1", "true", "yes"}


settings = Settings()
