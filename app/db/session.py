"""Database engine and session ownership.

The store handle is an explicit :class:`Database` object: the application
builds one in its lifespan, hands it to request dependencies through
``app.state`` and disposes it at shutdown. Nothing here connects at import
time, so tests and scripts can build their own handle against any URL.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from time import perf_counter
from typing import Any, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.base_class import Base

logger = logging.getLogger(__name__)


def _install_slow_query_logger(engine: Engine, threshold_ms: int) -> None:
    """Attach callbacks that warn when queries exceed the configured threshold."""

    if threshold_ms <= 0:
        return

    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):  # type: ignore[override]
        context._pharmia_query_start = perf_counter()

    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):  # type: ignore[override]
        start = getattr(context, "_pharmia_query_start", None)
        if start is None:
            return

        elapsed_ms = (perf_counter() - start) * 1000.0
        if elapsed_ms < threshold_ms:
            return

        snippet = " ".join(statement.split()) if isinstance(statement, str) else str(statement)
        if len(snippet) > 200:
            snippet = snippet[:197] + "..."

        # Les paramètres peuvent contenir des hash de mots de passe: on ne les journalise pas.
        logger.warning("SQL lente (%.1f ms) - %s", elapsed_ms, snippet)

    event.listen(engine, "before_cursor_execute", _before_cursor_execute)
    event.listen(engine, "after_cursor_execute", _after_cursor_execute)


def _install_sqlite_transaction_hooks(engine: Engine) -> None:
    """Let SQLAlchemy drive BEGIN itself so SAVEPOINTs work with pysqlite."""

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):  # type: ignore[no-untyped-def]
        conn.exec_driver_sql("BEGIN")


def _engine_arguments(url: str) -> dict[str, Any]:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}

    arguments: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        # Une base mémoire n'existe que tant que sa connexion vit.
        arguments["poolclass"] = StaticPool
    return arguments


class Database:
    """Owns one engine and the session factory bound to it."""

    def __init__(self, url: str | None = None, *, slow_query_threshold_ms: int | None = None):
        self.url = str(url or settings.DATABASE_URL)
        self.engine: Engine = create_engine(self.url, future=True, **_engine_arguments(self.url))

        if self.engine.dialect.name == "sqlite":
            _install_sqlite_transaction_hooks(self.engine)

        threshold = (
            settings.SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS
            if slow_query_threshold_ms is None
            else slow_query_threshold_ms
        )
        _install_slow_query_logger(self.engine, threshold)

        self._session_factory = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False
        )
        logger.info(
            "Base de données configurée: %s",
            self.engine.url.render_as_string(hide_password=True),
        )

    def session(self) -> Session:
        return self._session_factory()

    def create_all(self) -> None:
        # Importé ici pour enregistrer tous les modèles sur la metadata.
        from app.db import base  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Connexions à la base de données fermées.")

    def iter_session(self) -> Iterator[Session]:
        db = self.session()
        try:
            yield db
        finally:
            db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Commit the session on success, roll everything back on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
