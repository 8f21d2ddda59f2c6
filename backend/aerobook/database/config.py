"""
Engine and session management for the SQL store.

The URL is passed in (usually EngineConfig.database_url) or read from
DATABASE_URL. SQLite is the default; MySQL and PostgreSQL URLs get a
pre-pinged connection pool.
"""

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import create_all_tables, drop_all_tables

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///aerobook.db"


class DatabaseConfig:
    """
    Owns one SQLAlchemy engine and hands out sessions bound to it.

    Args:
        database_url: SQLAlchemy URL; falls back to DATABASE_URL, then a SQLite file
        echo: Log every SQL statement
        pool_size: Connections kept open for server databases
    """

    def __init__(self, database_url: Optional[str] = None, echo: bool = False, pool_size: int = 10):
        self.database_url = database_url or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
        self.echo = echo
        self.pool_size = pool_size
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None

        scheme = self.database_url.split(":", 1)[0]
        self.db_type = scheme.split("+", 1)[0]

    @property
    def is_sqlite(self) -> bool:
        return self.db_type == "sqlite"

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and (
            ":memory:" in self.database_url or self.database_url.rstrip("/") == "sqlite:"
        )

    def _engine_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"echo": self.echo}
        if self.is_sqlite:
            # Booking threads share the engine
            kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
            if self.is_memory:
                # A second connection would see a second, empty database
                kwargs["poolclass"] = StaticPool
        else:
            kwargs.update(pool_size=self.pool_size, max_overflow=self.pool_size * 2, pool_pre_ping=True)
        return kwargs

    def initialize(self) -> None:
        """
        Create the engine and check that the database answers.

        Raises:
            SQLAlchemyError: if the database cannot be reached
        """
        if self.engine is not None:
            return

        engine = create_engine(self.database_url, **self._engine_kwargs())
        if self.is_sqlite:
            event.listen(engine, "connect", self._on_sqlite_connect)

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            engine.dispose()
            logger.error(f"Cannot connect to {self.db_type} database: {e}")
            raise

        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        logger.info(f"Connected to {self.db_type} database")

    def _on_sqlite_connect(self, dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if not self.is_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    def create_tables(self) -> None:
        self.initialize()
        create_all_tables(self.engine)
        logger.info("Database tables ready")

    def drop_tables(self) -> None:
        self.initialize()
        drop_all_tables(self.engine)
        logger.warning("All database tables dropped")

    def get_session(self) -> Session:
        self.initialize()
        return self.SessionLocal()

    @contextmanager
    def get_session_context(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on any exception."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.debug(f"Session rolled back: {e}")
            raise
        finally:
            session.close()

    def test_connection(self) -> bool:
        try:
            self.initialize()
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            self.SessionLocal = None


def initialize_database(
    database_url: Optional[str] = None, echo: bool = False, create_tables: bool = True
) -> DatabaseConfig:
    """
    Connect to a database and, by default, create any missing tables.

    Returns:
        DatabaseConfig: ready to hand to SqlStore
    """
    db_config = DatabaseConfig(database_url=database_url, echo=echo)
    db_config.initialize()
    if create_tables:
        db_config.create_tables()
    return db_config


__all__ = [
    "DatabaseConfig",
    "initialize_database",
]
