import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Generator

from sqlmodel import create_engine, Session, SQLModel
from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ...core.config import Settings, get_settings
from ...core.exceptions import AppException, DatabaseError

# Import all models here to ensure they're registered with SQLModel.metadata
from . import models  # noqa: F401

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Database connection manager for the synchronous SQLModel engine.
    """

    def __init__(self, settings: Optional[Settings] = None, database_url: Optional[str] = None):
        self.settings = settings or get_settings()
        self.database_url = database_url or self.settings.database_url
        self._engine: Optional[Engine] = None

    def _get_database_config(self) -> dict:
        """Get database configuration based on URL."""
        config = {
            "echo": self.settings.database_echo,
            "pool_pre_ping": True,
        }

        if self.database_url.startswith("sqlite"):
            config["connect_args"] = {"check_same_thread": False}
            if ":memory:" in self.database_url or self.database_url in ("sqlite://", "sqlite:///"):
                config["poolclass"] = StaticPool
        else:
            config["pool_size"] = self.settings.database_pool_size
            config["max_overflow"] = self.settings.database_max_overflow

        return config

    def _create_sync_engine(self) -> Engine:
        """Create synchronous database engine."""
        try:
            engine = create_engine(self.database_url, **self._get_database_config())
            logger.info(f"Database engine created: {engine.url.render_as_string(hide_password=True)}")
            return engine

        except (SQLAlchemyError, ImportError) as e:
            logger.error(f"Failed to create database engine: {e}")
            raise DatabaseError(f"Database engine creation failed: {e}", operation="create_engine")

    def get_engine(self) -> Engine:
        """Get or create synchronous database engine."""
        if self._engine is None:
            self._engine = self._create_sync_engine()
        return self._engine

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Get database session with automatic cleanup."""
        session = Session(self.get_engine())

        try:
            logger.debug(f"Database session created: {id(session)}")
            yield session
            session.commit()
            logger.debug(f"Database session committed: {id(session)}")

        except AppException:
            session.rollback()
            raise

        except SQLAlchemyError as e:
            logger.error(f"Database session error: {e}")
            session.rollback()
            raise DatabaseError(f"Database operation failed: {e}")

        finally:
            session.close()
            logger.debug(f"Database session closed: {id(session)}")

    def create_tables(self) -> None:
        """Create all registered tables."""
        SQLModel.metadata.create_all(self.get_engine())
        logger.info("Database tables created")

    def drop_tables(self) -> None:
        """Drop all registered tables."""
        SQLModel.metadata.drop_all(self.get_engine())
        logger.info("Database tables dropped")

    def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            with self.get_engine().connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def dispose(self) -> None:
        """Close database connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connections closed")


database_manager = DatabaseManager()


def get_session_dependency() -> Generator[Session, None, None]:
    """FastAPI dependency for getting database session."""
    with database_manager.get_session() as session:
        yield session
