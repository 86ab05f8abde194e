"""
Database engine and session management.

Sessions are short-lived: one per store operation, committed on
success and rolled back on error.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ringtrader.storage.models import Base


logger = logging.getLogger(__name__)


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


class Database:
    """Owns the SQLAlchemy engine and session factory."""

    def __init__(self, url: str, echo: bool = False) -> None:
        """
        Initialize the database.

        Args:
            url: SQLAlchemy database URL.
            echo: Log every SQL statement.
        """
        self._url = url

        if _is_memory_url(url):
            # One shared connection, otherwise every session sees an empty database
            self._engine = create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self._engine = create_engine(url, echo=echo)

        if url.startswith("sqlite"):
            event.listen(self._engine, "connect", _enable_sqlite_foreign_keys)

        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    def __repr__(self) -> str:
        return f"Database(url={self._engine.url.render_as_string(hide_password=True)!r})"

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(self._engine)
        logger.info("Database schema ready (%s)", self._engine.url.render_as_string(hide_password=True))

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Close all pooled connections."""
        self._engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
