"""Application configuration via environment variables."""

from pathlib import Path
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'tradejournal.db'}"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173"]  # Vite dev server

    # Recompute strategy: False = incremental (order-sensitive),
    # True = replay the whole execution history in timestamp order on every write
    replay_on_write: bool = False

    model_config = {"env_prefix": "TJ_", "env_file": ".env"}


settings = Settings()
