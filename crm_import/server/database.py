"""Engine and session helpers for the import backend."""
from __future__ import annotations

import logging
from typing import Iterator, Sequence, Tuple

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from .models import PipelineStage

LOGGER = logging.getLogger(__name__)

DEFAULT_PIPELINE_STAGES: Sequence[Tuple[str, str]] = (
    ("Prospecção", "#94a3b8"),
    ("Qualificação", "#60a5fa"),
    ("Proposta", "#fbbf24"),
    ("Negociação", "#f97316"),
    ("Fechado - Ganho", "#22c55e"),
    ("Fechado - Perdido", "#ef4444"),
)


def create_db_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine; SQLite gets the settings needed for per-row savepoints."""

    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in {"sqlite://", "sqlite:///:memory:"}:
        kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, echo=echo, **kwargs)

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection):
        connection.exec_driver_sql("BEGIN")

    return engine


def init_db(engine: Engine, *, seed_stages: bool = True) -> None:
    """Create missing tables and, when the pipeline is empty, the default stages."""

    SQLModel.metadata.create_all(engine)
    if not seed_stages:
        return
    with Session(engine) as session:
        if session.exec(select(PipelineStage)).first() is not None:
            return
        for position, (name, color) in enumerate(DEFAULT_PIPELINE_STAGES, start=1):
            session.add(PipelineStage(name=name, color=color, position=position))
        session.commit()
        LOGGER.info("Seeded %s default pipeline stages", len(DEFAULT_PIPELINE_STAGES))


def session_scope(engine: Engine) -> Iterator[Session]:
    """Yield a session bound to ``engine`` (FastAPI dependency style)."""

    with Session(engine) as session:
        yield session


__all__ = ["DEFAULT_PIPELINE_STAGES", "create_db_engine", "init_db", "session_scope"]
