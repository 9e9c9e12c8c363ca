"""Database engine, session factory and the ``get_db`` dependency."""

from __future__ import annotations

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def activar_claves_foraneas(dbapi_connection, connection_record) -> None:
    """Enable foreign-key enforcement, and with it ON DELETE rules, on a SQLite connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(database_url: str):
    if database_url.startswith("sqlite"):
        sqlite_engine = create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
        )
        event.listen(sqlite_engine, "connect", activar_claves_foraneas)
        return sqlite_engine
    return create_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=10,
        max_overflow=20,
    )


engine = _build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Yield a session for dependency injection contexts."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create every mapped table that does not exist yet."""
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("create_tables: esquema verificado en %s", engine.url.get_backend_name())
