"""Database engine and session factory."""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from catalog_scraper.config import settings

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine, making sure a SQLite file's directory exists.

    Args:
        database_url: SQLAlchemy URL (sqlite:///... or postgresql+psycopg://...)
        echo: Log SQL statements
    """
    url = make_url(database_url)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        # Routes and the scheduler share the engine across threads
        connect_args["check_same_thread"] = False

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


def get_engine() -> Optional[Engine]:
    """Engine for the configured database, or None if persistence is disabled."""
    if not settings.database_url:
        logger.warning("DATABASE_URL not set - data persistence disabled")
        return None
    return create_db_engine(settings.database_url, echo=settings.debug)
