# treasurer/config.py
from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.orm import declarative_base, sessionmaker

from .core.persistence import build_engine, normalize_database_url

DEFAULT_JWT_SECRET = "dev-secret-please-change"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Database ---
    # SQLite file by default; point DATABASE_URL at Postgres for the networked backend.
    database_url: str = "sqlite:///./data/treasurer.db"

    # --- Security / JWT ---
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 12  # 12 hours
    login_rate_limit: int = 10
    login_rate_window_seconds: int = 60

    # --- CORS ---
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:4173"]

    # --- Logging ---
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"
    log_format: Literal["text", "json"] = "text"

    # --- Ledger ---
    # amount_delta: every payment mutation moves the balance by the raw amount change.
    # paid_only: only paid payments contribute to the balance.
    balance_policy: Literal["amount_delta", "paid_only"] = "amount_delta"

    app_env: str = "development"

    @property
    def sqlalchemy_database_url(self) -> str:
        return normalize_database_url(self.database_url)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

# Ensure path directory exists (for SQLite)
if settings.sqlalchemy_database_url.startswith("sqlite:///"):
    db_path = Path(settings.sqlalchemy_database_url.replace("sqlite:///", ""))
    db_path.parent.mkdir(parents=True, exist_ok=True)

# --- SQLAlchemy setup ---
engine = build_engine(settings.sqlalchemy_database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
