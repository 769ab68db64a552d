"""
configuration module for application settings and database connection.

loads environment variables and provides database engine/session management.
"""

import logging
import os
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

# load environment variables from .env file
load_dotenv()


class Config:
    """application configuration class."""

    # database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///health_data.db")
    STORAGE_TIMEOUT_SECONDS: float = float(os.getenv("STORAGE_TIMEOUT_SECONDS", "5"))

    # insight windows
    INSIGHTS_WINDOW_DAYS: int = int(os.getenv("INSIGHTS_WINDOW_DAYS", "30"))
    ALERTS_RECENCY_DAYS: int = int(os.getenv("ALERTS_RECENCY_DAYS", "7"))
    ALERTS_LIMIT: int = int(os.getenv("ALERTS_LIMIT", "10"))

    # live updates
    NOTIFICATION_QUEUE_SIZE: int = int(os.getenv("NOTIFICATION_QUEUE_SIZE", "100"))

    # logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # flask settings
    FLASK_ENV: str = os.getenv("FLASK_ENV", "development")
    FLASK_DEBUG: bool = os.getenv("FLASK_DEBUG", "True").lower() == "true"
    FLASK_PORT: int = int(os.getenv("FLASK_PORT", "3000"))


def _connect_args(database_url: str) -> dict:
    """
    driver arguments for the configured database.

    sqlite waits at most STORAGE_TIMEOUT_SECONDS on a locked database
    before raising, which the repositories surface as StorageError.
    """
    if "sqlite" in database_url:
        return {"check_same_thread": False, "timeout": Config.STORAGE_TIMEOUT_SECONDS}
    return {}


# database engine and session factory
engine = create_engine(
    Config.DATABASE_URL,
    echo=False,
    connect_args=_connect_args(Config.DATABASE_URL)
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db_session() -> Session:
    """
    create and return a new database session.

    returns:
        sqlalchemy Session object

    usage:
        session = get_db_session()
        try:
            # use session here
            pass
        finally:
            session.close()
    """
    return SessionLocal()


def init_db() -> None:
    """create all tables that do not exist yet."""
    # imported here so models register on Base before create_all
    from backend.models.vitals import Base
    import backend.models.sharing  # noqa: F401

    Base.metadata.create_all(bind=engine)


def configure_logging(level: str = None) -> None:
    """
    configure root logging for the server and scripts.

    args:
        level: log level name (defaults to Config.LOG_LEVEL)
    """
    logging.basicConfig(
        level=(level or Config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
