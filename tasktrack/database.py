"""Database connection handling for the tracker.

Two connection strategies are supported. A configured SQLAlchemy URL is used
as-is; without one, a disposable in-memory SQLite database is started inside
the process so the API can be exercised with zero configuration. Its contents
vanish when the process exits.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional, Union

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import StoreError

LOG = logging.getLogger(__name__)

EPHEMERAL_URL = "sqlite://"


class Base(DeclarativeBase):
    pass


class ConfiguredConnection:
    """Connect to the database named by an explicit URL."""

    in_memory = False

    def __init__(self, url: str) -> None:
        self.url = url

    def start(self) -> Engine:
        connect_args = {"check_same_thread": False} if self.url.startswith("sqlite") else {}
        return create_engine(self.url, connect_args=connect_args)

    def stop(self, engine: Engine) -> None:
        engine.dispose()

    def describe(self) -> str:
        return "configured database"


class EphemeralInstance:
    """Start a throwaway in-memory database shared by every session."""

    in_memory = True
    url = EPHEMERAL_URL

    def start(self) -> Engine:
        return create_engine(
            EPHEMERAL_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    def stop(self, engine: Engine) -> None:
        # Disposing the single pooled connection drops the in-memory database.
        engine.dispose()

    def describe(self) -> str:
        return "in-memory database (development fallback)"


ConnectionStrategy = Union[ConfiguredConnection, EphemeralInstance]


def select_strategy(url: Optional[str]) -> ConnectionStrategy:
    """Return the connection strategy implied by ``url``."""

    if url is not None and url.strip():
        return ConfiguredConnection(url.strip())
    return EphemeralInstance()


class Store:
    """Handle on the database shared by the services of one process."""

    def __init__(self, url: Optional[str] = None) -> None:
        self.strategy = select_strategy(url)
        self._engine: Optional[Engine] = None
        self._sessions: Optional[sessionmaker[Session]] = None

    @property
    def in_memory(self) -> bool:
        return self.strategy.in_memory

    @property
    def connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StoreError("Store is not connected")
        return self._engine

    def connect(self) -> None:
        """Open the connection and create missing tables.

        Raises :class:`StoreError` when the database cannot be reached. The
        caller decides whether that is fatal; nothing is retried here.
        """

        if self._engine is not None:
            return
        if self.in_memory:
            LOG.warning("No database URL configured; starting in-memory database for development")
        try:
            engine = self.strategy.start()
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            from . import models  # noqa: F401  # Register tables with the metadata

            Base.metadata.create_all(bind=engine)
        except (SQLAlchemyError, ImportError, ValueError) as exc:
            LOG.error("Database connection error: %s", exc)
            raise StoreError(f"Unable to connect to database: {exc}") from exc
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        LOG.info("Connected to %s", self.strategy.describe())

    def disconnect(self) -> None:
        """Release the connection; safe to call more than once."""

        engine, self._engine, self._sessions = self._engine, None, None
        if engine is None:
            return
        try:
            self.strategy.stop(engine)
        except SQLAlchemyError as exc:
            LOG.warning("Error stopping database: %s", exc)
        else:
            LOG.info("Disconnected from %s", self.strategy.describe())

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""

        if self._sessions is None:
            raise StoreError("Store is not connected")
        session = self._sessions()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(str(exc)) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


__all__ = [
    "Base",
    "ConfiguredConnection",
    "EphemeralInstance",
    "Store",
    "select_strategy",
]
