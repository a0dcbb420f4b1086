"""Database connection and session management"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError, UnboundExecutionError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from radio_progression.config import settings
from radio_progression.models.db import Base
from radio_progression.utils.json_encoder import json_dumps

logger = logging.getLogger(__name__)

class Database:
    """Database connection and session manager for the profile store"""

    def __init__(self):
        """Initialize database manager state"""
        self._engine = None
        self._SessionLocal = None

    def _engine_options(self, url: str) -> dict:
        """SQLite in-memory databases must share one connection across sessions"""
        options = {'json_serializer': json_dumps}
        parsed = make_url(url)
        if parsed.get_backend_name() == 'sqlite' and parsed.database in (None, '', ':memory:'):
            options['poolclass'] = StaticPool
            options['connect_args'] = {'check_same_thread': False}
        return options

    def init(self, url: Optional[str] = None) -> None:
        """
        Initialize database connection and create tables.

        Args:
            url: SQLAlchemy URL, defaults to settings.DATABASE_URL
        """
        connection_string = url or settings.DATABASE_URL
        try:
            self._engine = create_engine(connection_string, **self._engine_options(connection_string))
            Base.metadata.create_all(self._engine)
            self._SessionLocal = sessionmaker(bind=self._engine)
            logger.info("Database initialized successfully")

        except SQLAlchemyError as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    @property
    def initialized(self) -> bool:
        return self._SessionLocal is not None

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations"""
        if not self._SessionLocal:
            raise UnboundExecutionError("Database not initialized. Call init() first.")

        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """
        Clean up database connections.
        Should be called during application shutdown.
        """
        if self._engine:
            self._engine.dispose()
            self._engine = None
            self._SessionLocal = None

# Global database instance
db = Database()
