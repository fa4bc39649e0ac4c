from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine, event, func, select, text
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wellness_tracker.errors import StoreError
from wellness_tracker.models import Base
from wellness_tracker.settings import settings

logger = logging.getLogger(__name__)

Params = Mapping[str, Any] | Sequence[Any] | None


def _sqlite_path(url: str) -> str | None:
    if not url.startswith("sqlite"):
        return None
    _, _, path = url.partition(":///")
    if not path or path == ":memory:":
        return None
    return path


def _ensure_sqlite_dir(url: str) -> None:
    path = _sqlite_path(url)
    if path is None:
        return
    dir_path = os.path.dirname(path) if os.path.dirname(path) else "."
    if dir_path and not os.path.exists(dir_path):
        os.makedirs(dir_path, exist_ok=True)
        logger.info("Created database directory: %s", dir_path)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the single engine for the embedded store.

    Create one per process, hand it to the repositories and close it on
    shutdown (or use it as a context manager). The schema is created the first
    time the engine is opened; later ``initialize()`` calls are no-ops while
    the engine is open.
    """

    def __init__(self, url: str | None = None, *, echo: bool | None = None) -> None:
        self.url = url or settings.DATABASE_URL
        self.echo = settings.DATABASE_ECHO if echo is None else echo
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        self.initialize()
        assert self._engine is not None
        return self._engine

    def initialize(self) -> None:
        if self._engine is not None:
            return

        _ensure_sqlite_dir(self.url)

        kwargs: dict[str, Any] = {"echo": self.echo}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if _sqlite_path(self.url) is None:
                # in-memory: every checkout must see the same connection
                kwargs["poolclass"] = StaticPool

        try:
            engine = create_engine(self.url, **kwargs)
            if engine.dialect.name == "sqlite":
                event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            Base.metadata.create_all(engine)
        except SQLAlchemyError as exc:
            logger.exception("Error connecting to database %s", self.url)
            raise StoreError(f"could not open database: {exc}") from exc

        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
        logger.info("Database connection established (%s)", engine.dialect.name)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Session scope: commit on success, roll back on any exception."""
        self.initialize()
        assert self._session_factory is not None
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except IntegrityError as exc:
            # duplicate or dangling rows; callers decide the outcome
            db.rollback()
            logger.info("Constraint conflict, transaction rolled back: %s", exc.orig)
            raise StoreError(str(exc)) from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Store error, transaction rolled back")
            raise StoreError(str(exc)) from exc
        except BaseException:
            db.rollback()
            raise
        finally:
            db.close()

    def query(self, sql: str, params: Params = None) -> list[Row]:
        with self.transaction() as db:
            return list(self._run(db, sql, params).all())

    def execute(self, sql: str, params: Params = None) -> int:
        with self.transaction() as db:
            return self._run(db, sql, params).rowcount

    @staticmethod
    def _run(db: Session, sql: str, params: Params):
        if params is None or isinstance(params, Mapping):
            return db.execute(text(sql), dict(params or {}))
        # positional "?" placeholders go straight to the driver
        return db.connection().exec_driver_sql(sql, tuple(params))

    def describe(self) -> dict:
        engine = self.engine
        info: dict[str, Any] = {
            "dialect": engine.dialect.name,
            "sqlite_path": _sqlite_path(self.url),
            "tables": {},
        }
        with self.transaction() as db:
            for table in Base.metadata.sorted_tables:
                count = db.execute(select(func.count()).select_from(table)).scalar_one()
                info["tables"][table.name] = int(count)
        return info

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database connection closed")

    def __enter__(self) -> "Database":
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
