"""Database helpers: the store client owning engines and session factories.

`StoreClient` is constructed once at process start (see the lifespan handler
in `main.py`), attached to the application state and disposed on shutdown.
Request handlers obtain sessions from it through the dependencies in
`database.deps`.
"""

from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import Settings
from core.logger import get_logger
from .models import Base

logger = get_logger("database")


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def build_engine(url: str, connect_timeout: float = 5.0, pool_recycle: int = 1800, echo: bool = False) -> Engine:
    """Create an engine with connection-level timeouts for the given URL."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": connect_timeout}}
        # An in-memory database only exists on one connection.
        if _is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)
    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_recycle=pool_recycle,
        connect_args={"connect_timeout": int(connect_timeout)},
    )


class StoreClient:
    """Read/write engine pair with session factories.

    In production, point `CALORA_DATABASE_URL` and `CALORA_READ_DATABASE_URL`
    at different instances; by default both use the same engine.
    """

    def __init__(self, write_url: str, read_url: Optional[str] = None, connect_timeout: float = 5.0,
                 pool_recycle: int = 1800, echo: bool = False):
        self.write_url = write_url
        self.read_url = read_url or write_url
        self.write_engine = build_engine(write_url, connect_timeout, pool_recycle, echo)
        if self.read_url == self.write_url:
            self.read_engine = self.write_engine
        else:
            self.read_engine = build_engine(self.read_url, connect_timeout, pool_recycle, echo)
        self.WriteSession = sessionmaker(bind=self.write_engine, expire_on_commit=False)
        self.ReadSession = sessionmaker(bind=self.read_engine, expire_on_commit=False)
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "StoreClient":
        return cls(
            settings.database_url,
            settings.read_database_url,
            connect_timeout=settings.connect_timeout,
            pool_recycle=settings.pool_recycle,
            echo=settings.echo_sql,
        )

    def init_db(self) -> None:
        """Create all tables and indexes that do not exist yet."""
        Base.metadata.create_all(bind=self.write_engine)
        logger.info("Database schema ready (%s)", self.write_engine.url.render_as_string(hide_password=True))

    def ping(self) -> bool:
        """Run a trivial query against the read engine."""
        with self.read_engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def write_session(self) -> Iterator[Session]:
        """Yield a write-enabled session, closing it afterwards."""
        db = self.WriteSession()
        try:
            yield db
        finally:
            db.close()

    def read_session(self) -> Iterator[Session]:
        """Yield a read-only session, closing it afterwards."""
        db = self.ReadSession()
        try:
            yield db
        finally:
            db.close()

    def dispose(self) -> None:
        """Release pooled connections; safe to call more than once."""
        if self._closed:
            return
        self.write_engine.dispose()
        if self.read_engine is not self.write_engine:
            self.read_engine.dispose()
        self._closed = True
        logger.info("Database connections closed")
