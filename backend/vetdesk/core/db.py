import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.engine import Engine, make_url
from sqlmodel import Session, SQLModel, create_engine

# make sure all SQLModel models are imported (vetdesk.models) before creating tables
# otherwise, SQLModel might fail to initialize relationships properly
# for more details: https://github.com/fastapi/full-stack-fastapi-template/issues/28
from vetdesk.models import User, UserSession  # noqa: F401

logger = logging.getLogger(__name__)

# User upserts rely on INSERT ... ON CONFLICT, which only these backends provide
SUPPORTED_BACKENDS = ("postgresql", "sqlite")


class Database:
    """
    Owns the SQLAlchemy engine for the lifetime of the application.

    The engine is created by open() and disposed by close(), so the
    connection pool is never a module-level singleton.

    Usage:
        database = Database(settings.SQLALCHEMY_DATABASE_URI)
        database.open()
        with database.session() as session:
            session.exec(select(User)).all()
        database.close()
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self._engine_kwargs = engine_kwargs
        self._engine: Engine | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> None:
        """
        Create the engine and any missing tables.

        Raises:
            RuntimeError: If the URL names a backend other than PostgreSQL or SQLite
        """
        if self._engine is not None:
            return
        backend = make_url(self.url).get_backend_name()
        if backend not in SUPPORTED_BACKENDS:
            raise RuntimeError(f"Unsupported database backend: {backend}")
        self._engine = create_engine(self.url, **self._engine_kwargs)
        SQLModel.metadata.create_all(self._engine)
        logger.info("Database engine opened (%s)", self._engine.dialect.name)

    def close(self) -> None:
        """Dispose of the engine and its connection pool."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        logger.info("Database engine closed")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Get a database session context manager.

        Used by request dependencies and by background tasks that need
        database access outside of FastAPI's dependency injection.
        """
        with Session(self.engine) as session:
            yield session
