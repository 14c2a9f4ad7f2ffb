"""SQLite database operations.

Handles database connection and session management for the challenge engine.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from .models import Base

logger = logging.getLogger(__name__)


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Database connection and session manager."""

    def __init__(self, db_path: Optional[str] = None, echo: Optional[bool] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     REPQUEST_DB_PATH env var or the default location.
            echo: Log every SQL statement. Defaults to REPQUEST_SQL_ECHO.
        """
        config = get_config()
        if db_path is None:
            db_path = str(config.db_path)
        if echo is None:
            echo = config.sql_echo

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # In-memory databases need one shared connection or every session
        # would see its own empty database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=echo,
                connect_args={"check_same_thread": False},
            )
        event.listen(self.engine, "connect", _enable_foreign_keys)

        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.debug("Database engine ready at %s", db_path)

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import models so they register with Base
        from ..challenges.models import Challenge, Participant  # noqa: F401
        from ..parts.models import Part, PartCompletion  # noqa: F401
        from ..verification.models import VerificationRequest  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        Commits when the block exits normally and rolls back on any
        exception, so a block is applied all-or-nothing.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def use_session(self, session: Optional[Session] = None) -> Generator[Session, None, None]:
        """Reuse the caller's session or open a new one.

        Lets a manager method run standalone or as one step of a larger
        transaction owned by the caller.
        """
        if session is not None:
            yield session
        else:
            with self.get_session() as s:
                yield s


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
