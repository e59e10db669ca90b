from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.logging_config import get_logger

logger = get_logger(__name__)

Base = declarative_base()


class Database:
    """Owns the engine and session factory for one application instance.

    Created by the app factory, opened in the lifespan startup hook and
    closed on shutdown. Routes reach it through ``get_db``.
    """

    def __init__(self, url: str):
        self.url = url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def open(self) -> None:
        if self._engine is not None:
            return
        # SQLite needs connect_args for FastAPI compatibility
        connect_args = {"check_same_thread": False} if self.is_sqlite else {}
        self._engine = create_engine(self.url, connect_args=connect_args)

        # Enable foreign key enforcement in SQLite (off by default)
        if self.is_sqlite:
            @event.listens_for(self._engine, "connect")
            def _set_sqlite_pragma(dbapi_conn, connection_record):
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        logger.info("Database engine opened")

    def create_all(self) -> None:
        import app.models  # noqa: F401  register tables on Base.metadata

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created/verified")

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        return self._session_factory()

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database engine disposed")


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
