"""
Datastore: one per process, created at startup and stored on app.state.datastore.
Engine is created lazily; a failed connection attempt is not cached, so the next call retries.
"""
import logging
import threading

from fastapi import Depends, Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import Session, sessionmaker

from videoshare.core.errors import PersistenceError

logger = logging.getLogger(__name__)

Base = declarative_base()


class Datastore:
    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        # SQLite needs check_same_thread=False for FastAPI
        connect_args = dict(engine_kwargs.pop("connect_args", None) or {})
        if url.startswith("sqlite"):
            connect_args.setdefault("check_same_thread", False)
        engine_kwargs["connect_args"] = connect_args
        self._engine_kwargs = engine_kwargs
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None
        self._lock = threading.Lock()

    def _connect(self) -> Engine:
        engine = None
        try:
            engine = create_engine(self.url, echo=False, **self._engine_kwargs)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, ImportError) as e:
            # ImportError: dialect driver not installed
            if engine is not None:
                engine.dispose()
            logger.error("Database connection failed: %s", e)
            raise PersistenceError(f"Database connection failed: {e}", retryable=is_transient(e)) from e
        logger.info("Database connected: %s", self.url.split("@")[-1])
        return engine

    @property
    def engine(self) -> Engine:
        if self._engine is not None:
            return self._engine
        with self._lock:
            if self._engine is None:
                engine = self._connect()
                self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
                self._engine = engine
        return self._engine

    def session(self) -> Session:
        """New ORM session. Raises PersistenceError if the database is unreachable."""
        self.engine  # connects on first use
        return self._session_factory()

    def create_all(self) -> None:
        # Import models so their tables are registered on Base.metadata
        import videoshare.models  # noqa: F401

        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not create tables: {e}", retryable=is_transient(e)) from e

    def dispose(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            self._session_factory = None


def is_transient(exc: BaseException) -> bool:
    """Connection drops and pool or driver timeouts; worth retrying later."""
    return isinstance(exc, (OperationalError, PoolTimeoutError))


def get_datastore(request: Request) -> Datastore:
    return request.app.state.datastore


def get_db(datastore: Datastore = Depends(get_datastore)):
    db = datastore.session()
    try:
        yield db
    finally:
        db.close()
