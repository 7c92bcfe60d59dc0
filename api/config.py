import os
from functools import lru_cache

from pydantic import BaseModel


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql+asyncpg://fleet:fleet@db:5432/fleet",
    )
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # Serializes simulation runs and applies across API workers
    SIMULATION_LOCK_ENABLED: bool = _env_flag("SIMULATION_LOCK_ENABLED", "true")
    SIMULATION_LOCK_TIMEOUT_S: int = int(os.getenv("SIMULATION_LOCK_TIMEOUT_S", "60"))
    SIMULATION_LOCK_WAIT_S: int = int(os.getenv("SIMULATION_LOCK_WAIT_S", "5"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
