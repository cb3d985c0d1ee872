"""Relational store: engine lifecycle, sessions and schema bootstrap."""

import logging
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

log = logging.getLogger(__name__)

Base = declarative_base()

# Columns added to `users` after the first release; older files get them in place.
LEGACY_USER_COLUMNS = {
    "bio": "TEXT",
    "is_admin": "BOOLEAN NOT NULL DEFAULT FALSE",
}


class Database:
    """Owns the engine and session factory for one process.

    Either an embedded SQLite file or a hosted PostgreSQL database, selected by
    URL. Constructed at application startup and disposed at shutdown.
    """

    def __init__(self, url: str, pool_size: int = 5):
        self.url = url
        self.pool_size = pool_size
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
        if self._engine is not None:
            return self
        if self.is_sqlite:
            self._engine = create_engine(self.url, connect_args={"check_same_thread": False})
        else:
            self._engine = create_engine(
                self.url,
                pool_size=self.pool_size,
                max_overflow=0,
                pool_pre_ping=True,
            )
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        log.info(f"Database opened ({self._engine.dialect.name})")
        return self

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            log.info("Database closed")
        self._engine = None
        self._session_factory = None

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        return self._session_factory()


def init_db(database: Database) -> None:
    """Create missing tables and bring older `users` tables up to date."""
    # Register models on Base.metadata
    import affinity_api.models  # noqa: F401

    Base.metadata.create_all(bind=database.engine)
    _upgrade_users_table(database.engine)


def _upgrade_users_table(engine: Engine) -> None:
    existing = {column["name"] for column in inspect(engine).get_columns("users")}
    for name, ddl in LEGACY_USER_COLUMNS.items():
        if name in existing:
            continue
        with engine.begin() as conn:
            conn.execute(text(f"ALTER TABLE users ADD COLUMN {name} {ddl}"))
        log.info(f"Added column users.{name}")


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
