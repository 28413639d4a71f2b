"""
Database engine and session management.
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import Config
from models.db_models import Base
from utils.logger import app_logger


class DatabaseManager:
    """Manages the shared SQLAlchemy engine and hands out sessions."""

    _engine: Engine | None = None
    _session_factory: sessionmaker | None = None

    @classmethod
    def configure(cls, url: str | None = None) -> Engine:
        """
        Create the engine for the given URL and make sure the tables exist.

        Args:
            url: SQLAlchemy database URL (defaults to Config.DATABASE_URL)

        Returns:
            The configured engine
        """
        cls.dispose()
        url = url or Config.DATABASE_URL
        parsed = make_url(url)
        engine_kwargs = {}

        if parsed.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if parsed.database in (None, "", ":memory:"):
                # One shared connection, otherwise every checkout sees an empty database
                engine_kwargs["poolclass"] = StaticPool
            else:
                Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

        cls._engine = create_engine(url, **engine_kwargs)
        cls._session_factory = sessionmaker(bind=cls._engine, expire_on_commit=False)
        Base.metadata.create_all(cls._engine)

        app_logger.info(f"Database initialized: {parsed.render_as_string(hide_password=True)}")
        return cls._engine

    @classmethod
    @contextmanager
    def session(cls) -> Iterator[Session]:
        """
        Provide a transactional session.

        Commits when the block exits normally and rolls back if it raises.
        """
        if cls._session_factory is None:
            cls.configure()

        session = cls._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @classmethod
    def dispose(cls) -> None:
        """Dispose of the engine and its connection pool."""
        if cls._engine is not None:
            cls._engine.dispose()
            cls._engine = None
            cls._session_factory = None
