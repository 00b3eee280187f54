from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from src.core.config import Settings, get_settings

settings = get_settings()


def engine_options(database_url: str, settings: Settings) -> dict:
    """
    Keyword arguments for create_engine carrying the store timeouts.

    STORE_TIMEOUT_SECONDS bounds connecting; STORE_WRITE_TIMEOUT_SECONDS bounds
    each statement, so reads get the same generous ceiling as writes.
    """
    backend = make_url(database_url).get_backend_name()
    connect_timeout = int(settings.store_timeout_seconds)
    statement_timeout = int(settings.store_write_timeout_seconds)

    if backend == "sqlite":
        return {
            "connect_args": {
                "check_same_thread": False,
                # sqlite only waits here on locks held by writers
                "timeout": settings.store_write_timeout_seconds,
            }
        }

    options = {
        "pool_pre_ping": True,
        "pool_timeout": settings.store_timeout_seconds,
    }
    if backend == "postgresql":
        options["connect_args"] = {
            "connect_timeout": connect_timeout,
            "options": f"-c statement_timeout={statement_timeout * 1000}",
        }
    elif backend in ("mysql", "mariadb"):
        options["connect_args"] = {
            "connect_timeout": connect_timeout,
            "read_timeout": statement_timeout,
            "write_timeout": statement_timeout,
        }
    return options


def build_engine(database_url: str):
    """Create the engine with the configured store timeouts"""
    return create_engine(database_url, **engine_options(database_url, settings))


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database dependency for FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
