"""DB utilities for SQLAlchemy sessions/engine.

Every connection attempt and statement is bounded: connect timeout at the driver, pool checkout
timeout, and a server-side statement timeout on PostgreSQL. In-memory SQLite URLs share a single
connection (StaticPool) so tests see one database.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def normalize_url(url: str) -> str:
    """Force le driver psycopg (v3) pour les URLs Postgres génériques."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix) :]
    return url


def get_engine(
    url: str,
    connect_timeout_s: int = 5,
    pool_timeout_s: float = 5.0,
    statement_timeout_ms: int = 10_000,
) -> Engine:
    """Crée un moteur SQLAlchemy borné en temps à partir de l'URL de base de données."""
    db_url = normalize_url(url)
    if db_url.startswith("sqlite"):
        kwargs: dict = {
            "connect_args": {"check_same_thread": False, "timeout": connect_timeout_s}
        }
        if ":memory:" in db_url or db_url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(db_url, future=True, echo=False, **kwargs)
    connect_args = {"connect_timeout": connect_timeout_s}
    if db_url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={int(statement_timeout_ms)}"
    return create_engine(
        db_url,
        future=True,
        echo=False,
        pool_pre_ping=True,
        pool_recycle=1800,
        pool_timeout=pool_timeout_s,
        connect_args=connect_args,
    )


def get_session_factory(engine: Engine) -> sessionmaker:
    """Crée une factory de sessions SQLAlchemy."""
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Contexte de session SQLAlchemy avec gestion automatique des transactions.

    Commit en sortie normale, rollback sur toute exception (puis re-levée), fermeture dans tous
    les cas. Une opération multi-écritures n'est donc jamais partiellement visible.
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
