import os
from functools import lru_cache
from typing import List
from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime configuration, read from the environment"""

    database_url: str = "sqlite:///./cafeteria.db"
    # Generous by default; Astra-style managed endpoints are slow on writes
    store_timeout_seconds: float = 30.0
    store_write_timeout_seconds: float = 40.0

    # "unconditional" overwrites stock after the check, "conditional" uses compare-and-set
    stock_write_mode: str = "unconditional"
    stock_write_retries: int = 3

    bcrypt_rounds: int = 12
    session_ttl_hours: int = 24
    order_history_limit: int = 2000

    log_level: str = "INFO"
    cors_origins: List[str] = []

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        origins = os.getenv("CORS_ORIGINS", "")
        return cls(
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            store_timeout_seconds=float(
                os.getenv("STORE_TIMEOUT_SECONDS", defaults.store_timeout_seconds)
            ),
            store_write_timeout_seconds=float(
                os.getenv("STORE_WRITE_TIMEOUT_SECONDS", defaults.store_write_timeout_seconds)
            ),
            stock_write_mode=os.getenv("STOCK_WRITE_MODE", defaults.stock_write_mode).lower(),
            stock_write_retries=int(os.getenv("STOCK_WRITE_RETRIES", defaults.stock_write_retries)),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", defaults.bcrypt_rounds)),
            session_ttl_hours=int(os.getenv("SESSION_TTL_HOURS", defaults.session_ttl_hours)),
            order_history_limit=int(os.getenv("ORDER_HISTORY_LIMIT", defaults.order_history_limit)),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
