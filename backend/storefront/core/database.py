"""
Database handle

The application owns exactly one Database instance: it is opened in the
FastAPI lifespan, stored on app.state and passed into repositories and
services. Nothing in the codebase keeps a module-level connection.

- SQLAlchemy ORM (models in storefront.models)
- psycopg2 as the PostgreSQL driver in production
- SQLite for local runs and tests

Author: TM3
Updated: 2025-12-02
"""
import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


# Base para modelos
Base = declarative_base()

# Execution option that makes a SQLite transaction start with BEGIN IMMEDIATE
SQLITE_IMMEDIATE = "sqlite_immediate"


class Database:
    """
    Injected storage handle with an explicit lifecycle

    Usage:
        database = Database(settings.DATABASE_URL)
        database.open()
        with database.transaction() as session:
            ...
        database.close()
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def open(self) -> "Database":
        """Create the engine and session factory"""
        if self._engine is not None:
            return self

        if self.is_sqlite:
            connect_args = {"check_same_thread": False, "timeout": 30}
            if ":memory:" in self.url or self.url == "sqlite://":
                self._engine = create_engine(
                    self.url, echo=self.echo, connect_args=connect_args, poolclass=StaticPool
                )
            else:
                self._engine = create_engine(self.url, echo=self.echo, connect_args=connect_args)
            _serialize_sqlite_writers(self._engine)
        else:
            self._engine = create_engine(
                self.url,
                echo=self.echo,
                pool_pre_ping=True,  # Verificar conexión antes de usar
                pool_size=10,  # Número de conexiones en el pool
                max_overflow=20,  # Conexiones extras si se necesitan
            )

        self._session_factory = sessionmaker(
            bind=self._engine, autoflush=False, expire_on_commit=False
        )
        logger.info(f"Database opened ({self._engine.dialect.name})")
        return self

    def close(self):
        """Dispose the connection pool"""
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database closed")
        self._engine = None
        self._session_factory = None

    def create_all(self):
        """Create all tables registered on Base"""
        # Register the ORM models on Base.metadata
        from storefront import models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_all(self):
        from storefront import models  # noqa: F401

        Base.metadata.drop_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session for read-only work; closed (and rolled back) on exit"""
        if self._session_factory is None:
            raise RuntimeError("Database is not open")

        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Atomic unit of work

        Commits when the block exits normally, rolls back on any exception
        and re-raises it.
        """
        with self.session() as session:
            if self.is_sqlite:
                # Take the write lock up front (see _serialize_sqlite_writers)
                session.connection(execution_options={SQLITE_IMMEDIATE: True})
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise

    def ping(self, max_retries: int = 3, retry_delay: float = 1.0) -> float:
        """
        Run SELECT 1 with automatic retry on connection failures

        Args:
            max_retries: Maximum number of connection attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)

        Returns:
            Latency of the successful attempt in milliseconds

        Raises:
            OperationalError: If all retry attempts fail
        """
        last_error = None

        for attempt in range(1, max_retries + 1):
            try:
                start = time.time()
                with self.engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
                return round((time.time() - start) * 1000, 2)

            except OperationalError as e:
                last_error = e
                logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {e}")

                if attempt < max_retries:
                    # Exponential backoff
                    delay = retry_delay * (2 ** (attempt - 1))
                    logger.info(f"Retrying in {delay:.2f} seconds...")
                    time.sleep(delay)
                else:
                    logger.error(f"All {max_retries} connection attempts failed")

        raise last_error


def _serialize_sqlite_writers(engine: Engine):
    """
    Emit BEGIN ourselves on SQLite

    Units of work from Database.transaction() start with BEGIN IMMEDIATE so
    writers queue on the busy timeout. Read-only sessions use a deferred
    BEGIN and never wait behind a writer.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(SQLITE_IMMEDIATE):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def get_database(request: Request) -> Database:
    """
    FastAPI dependency para obtener el Database abierto en el lifespan

    Usage:
        @router.get("/items")
        def read_items(database: Database = Depends(get_database)):
            ...
    """
    return request.app.state.database
