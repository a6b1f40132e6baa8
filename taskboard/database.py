"""Engine, session factory and migrations for the notification tables."""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from taskboard.config import get_settings


ROOT_DIR = Path(__file__).resolve().parent.parent


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite connections get foreign keys and cross-thread use."""
    is_sqlite = database_url.startswith("sqlite")
    # Sessions from get_db are opened in one worker thread and used in another.
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    new_engine = create_engine(database_url, echo=echo, future=True, connect_args=connect_args)

    if is_sqlite:
        @event.listens_for(new_engine, "connect")
        def enable_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.debug)


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request, committed when the handler succeeds."""
    with session_scope() as db:
        yield db


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for scripts and jobs; rolled back and re-raised on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def run_migrations(target_revision: str = "head") -> None:
    """Upgrade the configured database to ``target_revision``."""
    cfg = Config(str(ROOT_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT_DIR / "migrations"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url)
    command.upgrade(cfg, target_revision)
